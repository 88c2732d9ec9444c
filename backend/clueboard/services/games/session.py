"""One player's live game.

A :class:`GameSession` owns the player's :class:`GameState`, runs the pure
transitions from :mod:`.state` one action at a time, and turns every scoring
transition into a committed scoring event: durable upsert first, broadcast
only if the upsert succeeded. Store and broadcast failures never reach the
player; they are logged and kept on ``warnings``.
"""

import logging
import random
import threading
from typing import List, Optional

from clueboard.errors import BroadcastUnavailable, StoreUnavailable
from . import state as transitions
from .broadcaster import Broadcaster
from .catalog import PuzzleCatalog
from .leaderboard import LeaderboardCache
from .score_store import ScoreStore
from .state import GameState, Mode, SessionRules, Transition, WORD_ATTEMPTS

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 64


class GameSession:
    def __init__(
        self,
        session_id: str,
        player: str,
        catalog: PuzzleCatalog,
        store: ScoreStore,
        broadcaster: Broadcaster,
        rules: Optional[SessionRules] = None,
        leaderboard: Optional[LeaderboardCache] = None,
        rng=None,
    ):
        self.session_id = session_id
        self.player = player
        self.catalog = catalog
        self.rules = rules or SessionRules()
        self.leaderboard = leaderboard or LeaderboardCache()
        self.state = GameState()
        self.warnings: List[str] = []
        self.closed = False
        self.last_active = 0.0
        self._store = store
        self._broadcaster = broadcaster
        self._rng = rng or random.Random()
        self._lock = threading.RLock()

    # ---- lifecycle ----

    def open(self) -> None:
        """Subscribe to score updates, then seed the leaderboard view."""
        self.leaderboard.attach(self._broadcaster)
        self.leaderboard.seed(self._store)
        logger.info(f"[session-open] session={self.session_id} player={self.player}")

    def close(self) -> None:
        with self._lock:
            if self.closed:
                return
            self.closed = True
            self.leaderboard.detach()
        logger.info(f"[session-end] session={self.session_id} player={self.player} score={self.state.score}")

    # ---- actions ----

    def _apply(self, step) -> Transition:
        with self._lock:
            transition = step(self.state)
            self.state = transition.state
            if transition.scored:
                self._commit_scoring_event(self.state.score)
            return transition

    def start(self, mode: str, category: Optional[str] = None) -> Transition:
        if mode == 'category':
            return self._apply(lambda s: transitions.start_category_round(s, self.catalog, category, rng=self._rng))
        if mode == 'word':
            return self._apply(lambda s: transitions.start_word_round(s, self.catalog, rng=self._rng))
        raise ValueError(f"unknown game mode {mode!r}")

    def guess(self, text: str) -> Transition:
        return self._apply(lambda s: transitions.submit_guess(s, self.catalog, self.rules, text, rng=self._rng))

    def reveal_clue(self) -> Transition:
        return self._apply(lambda s: transitions.reveal_clue(s, self.catalog))

    def skip(self) -> Transition:
        return self._apply(lambda s: transitions.skip_puzzle(s, self.catalog, rng=self._rng))

    def change_category(self, category: str) -> Transition:
        return self._apply(lambda s: transitions.change_category(s, self.catalog, category, rng=self._rng))

    def view_leaderboard(self) -> Transition:
        return self._apply(transitions.view_leaderboard)

    def back(self) -> Transition:
        return self._apply(transitions.go_back)

    def play_again(self) -> Transition:
        return self._apply(transitions.play_again)

    def rename(self, name: str) -> None:
        name = (name or '').strip()
        if not name or len(name) > MAX_NAME_LENGTH:
            raise ValueError(f"name must be 1-{MAX_NAME_LENGTH} characters")
        with self._lock:
            logger.info(f"[session-rename] session={self.session_id} from={self.player} to={name}")
            self.player = name

    # ---- scoring ----

    def _commit_scoring_event(self, score: int) -> bool:
        try:
            self._store.upsert(self.player, score)
        except StoreUnavailable as exc:
            self._warn(f"Score not saved: {exc}")
            return False
        try:
            self._broadcaster.publish(self.player, score)
        except BroadcastUnavailable as exc:
            self._warn(f"Score saved but not broadcast: {exc}")
            return False
        logger.info(f"[score-commit] session={self.session_id} player={self.player} score={score}")
        return True

    def _warn(self, text: str) -> None:
        logger.warning(f"[score-commit-failed] session={self.session_id} player={self.player} {text}")
        self.warnings.append(text)

    # ---- presentation ----

    def _round_view(self) -> dict:
        st = self.state
        if st.puzzle_index is None:
            return {}
        if st.mode == Mode.CATEGORY_ROUND or (st.mode == Mode.ELIMINATED and st.category):
            puzzle = self.catalog.category_puzzle(st.category, st.puzzle_index)
            return {
                'category': st.category,
                'clues': list(puzzle.clues[:st.clue_index + 1]),
                'clue_index': st.clue_index,
                'clues_total': len(puzzle.clues),
                'lives_left': max(0, self.rules.life_limit - st.wrong_count),
            }
        if st.mode == Mode.WORD_ROUND:
            puzzle = self.catalog.word_puzzle(st.puzzle_index)
            definitions = [puzzle.definitions[0]]
            if st.attempt > 1:
                definitions.append(puzzle.definitions[1])
            return {
                'masked_word': transitions.masked_word(puzzle.word, st.revealed),
                'word_length': len(puzzle.word),
                'definitions': definitions,
                'attempt': st.attempt,
                'attempts_left': WORD_ATTEMPTS - st.attempt + 1,
            }
        return {}

    def to_dict(self) -> dict:
        with self._lock:
            return {
                'session_id': self.session_id,
                'player': self.player,
                'mode': self.state.mode.value,
                'score': self.state.score,
                'wrong_count': self.state.wrong_count,
                'message': self.state.message,
                'round': self._round_view(),
                'leaderboard': self.leaderboard.to_list(),
                'leaderboard_stale': self.leaderboard.stale,
                'warnings': list(self.warnings),
            }
