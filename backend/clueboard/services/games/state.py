"""Pure game-state transitions.

Every function here takes the current :class:`GameState` and returns a
:class:`Transition` holding the next state. Nothing is mutated in place and no
I/O happens; :mod:`clueboard.services.games.session` owns the side effects
(durable score writes and broadcasts) that a transition asks for.
"""

import random
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Optional

from clueboard.errors import InvalidTransition
from .catalog import PuzzleCatalog, normalize_guess

WORD_ATTEMPTS = 3
MAX_CLUE_POINTS = 5
WORD_POOL = 'words'


class Mode(str, Enum):
    HOME = 'home'
    CATEGORY_ROUND = 'category_round'
    WORD_ROUND = 'word_round'
    ELIMINATED = 'eliminated'
    LEADERBOARD = 'leaderboard'


@dataclass(frozen=True)
class SessionRules:
    life_limit: int = 4
    reset_lives_on_correct: bool = False


@dataclass(frozen=True)
class GameState:
    mode: Mode = Mode.HOME
    category: Optional[str] = None
    puzzle_index: Optional[int] = None
    clue_index: int = 0
    wrong_count: int = 0
    attempt: int = 1
    revealed: FrozenSet[int] = field(default_factory=frozenset)
    score: int = 0
    # Pool ('words' or a category name) and index of the last puzzle served
    last_pool: Optional[str] = None
    last_index: Optional[int] = None
    message: str = ''


@dataclass(frozen=True)
class Transition:
    state: GameState
    points: int = 0
    # True when the transition is a scoring event that must be committed
    scored: bool = False


def category_points(clue_index: int) -> int:
    return max(1, MAX_CLUE_POINTS - clue_index)


def word_points(attempt: int) -> int:
    return max(1, WORD_ATTEMPTS + 1 - attempt)


def hidden_positions(word: str, revealed) -> list:
    """Letter positions of ``word`` not yet revealed. Spaces and punctuation never count."""
    return [i for i, ch in enumerate(word) if ch.isalnum() and i not in revealed]


def masked_word(word: str, revealed) -> str:
    return ' '.join(ch if (i in revealed or not ch.isalnum()) else '_' for i, ch in enumerate(word))


def _require(state: GameState, action: str, *modes: Mode) -> None:
    if state.mode not in modes:
        raise InvalidTransition(action, state.mode.value)


def _exclude_for(state: GameState, pool: str) -> Optional[int]:
    return state.last_index if state.last_pool == pool else None


def _serve_category(state: GameState, catalog: PuzzleCatalog, category: str, rng, **changes) -> GameState:
    idx, _ = catalog.select_category_puzzle(category, _exclude_for(state, category), rng=rng)
    return replace(
        state,
        mode=Mode.CATEGORY_ROUND,
        category=category,
        puzzle_index=idx,
        clue_index=0,
        last_pool=category,
        last_index=idx,
        **changes,
    )


def _serve_word(state: GameState, catalog: PuzzleCatalog, rng, **changes) -> GameState:
    idx, _ = catalog.select_word_puzzle(_exclude_for(state, WORD_POOL), rng=rng)
    return replace(
        state,
        mode=Mode.WORD_ROUND,
        puzzle_index=idx,
        attempt=1,
        revealed=frozenset(),
        last_pool=WORD_POOL,
        last_index=idx,
        **changes,
    )


def _home(state: GameState, message: str = '') -> GameState:
    return replace(
        state,
        mode=Mode.HOME,
        puzzle_index=None,
        clue_index=0,
        wrong_count=0,
        attempt=1,
        revealed=frozenset(),
        message=message,
    )


def start_category_round(state: GameState, catalog: PuzzleCatalog, category: Optional[str] = None, rng=None) -> Transition:
    _require(state, 'start a category round', Mode.HOME)
    if category is None:
        category = state.category or next(iter(catalog.categories), '')
    nxt = _serve_category(state, catalog, category, rng, wrong_count=0, message=f"Category: {category}")
    return Transition(nxt)


def start_word_round(state: GameState, catalog: PuzzleCatalog, rng=None) -> Transition:
    _require(state, 'start a word round', Mode.HOME)
    return Transition(_serve_word(state, catalog, rng, wrong_count=0, message='Guess the word'))


def change_category(state: GameState, catalog: PuzzleCatalog, category: str, rng=None) -> Transition:
    _require(state, 'change category', Mode.CATEGORY_ROUND)
    return Transition(_serve_category(state, catalog, category, rng, message=f"Category: {category}"))


def reveal_clue(state: GameState, catalog: PuzzleCatalog) -> Transition:
    _require(state, 'reveal a clue', Mode.CATEGORY_ROUND)
    puzzle = catalog.category_puzzle(state.category, state.puzzle_index)
    last = len(puzzle.clues) - 1
    if state.clue_index >= last:
        return Transition(replace(state, message='No more clues for this one'))
    return Transition(replace(state, clue_index=state.clue_index + 1, message=''))


def skip_puzzle(state: GameState, catalog: PuzzleCatalog, rng=None) -> Transition:
    _require(state, 'skip', Mode.CATEGORY_ROUND, Mode.WORD_ROUND)
    if state.mode == Mode.CATEGORY_ROUND:
        return Transition(_serve_category(state, catalog, state.category, rng, message='New clue'))
    return Transition(_serve_word(state, catalog, rng, message='New word'))


def guess_category(state: GameState, catalog: PuzzleCatalog, rules: SessionRules, guess: str, rng=None) -> Transition:
    _require(state, 'guess', Mode.CATEGORY_ROUND)
    puzzle = catalog.category_puzzle(state.category, state.puzzle_index)
    if puzzle.matches(guess):
        points = category_points(state.clue_index)
        changes = {'score': state.score + points, 'message': f"Correct! It was {puzzle.name}. +{points} points"}
        if rules.reset_lives_on_correct:
            changes['wrong_count'] = 0
        nxt = _serve_category(state, catalog, state.category, rng, **changes)
        return Transition(nxt, points=points, scored=True)

    wrong = state.wrong_count + 1
    if wrong >= rules.life_limit:
        nxt = replace(
            state,
            mode=Mode.ELIMINATED,
            wrong_count=wrong,
            message=f"Out of lives! The answer was {puzzle.name}. Final score: {state.score}",
        )
        return Transition(nxt, points=0, scored=True)
    left = rules.life_limit - wrong
    return Transition(replace(
        state,
        wrong_count=wrong,
        message=f"Not quite. {left} {'life' if left == 1 else 'lives'} left",
    ))


def guess_word(state: GameState, catalog: PuzzleCatalog, guess: str, rng=None) -> Transition:
    _require(state, 'guess', Mode.WORD_ROUND)
    puzzle = catalog.word_puzzle(state.puzzle_index)
    if puzzle.matches(guess):
        points = word_points(state.attempt)
        nxt = _serve_word(
            state, catalog, rng,
            score=state.score + points,
            message=f"Correct! The word was {puzzle.word}. +{points} points",
        )
        return Transition(nxt, points=points, scored=True)

    if state.attempt >= WORD_ATTEMPTS:
        nxt = _serve_word(state, catalog, rng, message=f"Out of attempts. The word was {puzzle.word}")
        return Transition(nxt)

    hidden = hidden_positions(puzzle.word, state.revealed)
    revealed = state.revealed
    if hidden:
        revealed = revealed | {(rng or random).choice(hidden)}
    left = WORD_ATTEMPTS - state.attempt
    return Transition(replace(
        state,
        attempt=state.attempt + 1,
        revealed=frozenset(revealed),
        message=f"Not quite. {left} {'attempt' if left == 1 else 'attempts'} left",
    ))


def submit_guess(state: GameState, catalog: PuzzleCatalog, rules: SessionRules, guess: str, rng=None) -> Transition:
    _require(state, 'guess', Mode.CATEGORY_ROUND, Mode.WORD_ROUND)
    if not normalize_guess(guess):
        return Transition(replace(state, message='Type a guess first'))
    if state.mode == Mode.CATEGORY_ROUND:
        return guess_category(state, catalog, rules, guess, rng=rng)
    return guess_word(state, catalog, guess, rng=rng)


def view_leaderboard(state: GameState) -> Transition:
    return Transition(replace(state, mode=Mode.LEADERBOARD, message=''))


def go_back(state: GameState) -> Transition:
    if state.mode == Mode.HOME:
        raise InvalidTransition('go back', state.mode.value)
    return Transition(_home(state))


def play_again(state: GameState) -> Transition:
    _require(state, 'play again', Mode.ELIMINATED)
    return Transition(_home(state, message='Ready for another round'))