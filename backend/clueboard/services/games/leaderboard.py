import logging
import threading
from typing import List, Optional, Sequence, Tuple

from clueboard.errors import StoreUnavailable
from .broadcaster import Broadcaster, ScoreEvent, Subscription
from .score_store import LeaderboardEntry, ScoreStore

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5


def merge_entry(entries: Sequence[LeaderboardEntry], event: ScoreEvent, limit: int = DEFAULT_LIMIT) -> Tuple[LeaderboardEntry, ...]:
    """Fold one score update into a top-``limit`` view.

    The member's existing entry is replaced, never duplicated. A changed
    score goes behind any entry it ties with (the others reached that score
    first), then the view is re-sorted and truncated. An unchanged score
    keeps its place.
    """
    if LeaderboardEntry(event.member, event.score) in entries:
        return tuple(entries[:limit])
    kept = [e for e in entries if e.member != event.member]
    kept.append(LeaderboardEntry(event.member, event.score))
    kept.sort(key=lambda e: -e.score)
    return tuple(kept[:limit])


class LeaderboardCache:
    """One session's view of the top scores, kept live by the broadcaster."""

    def __init__(self, limit: int = DEFAULT_LIMIT):
        self.limit = limit
        self._entries: Tuple[LeaderboardEntry, ...] = ()
        self._lock = threading.Lock()
        self._subscription: Optional[Subscription] = None
        self.stale = False

    def seed(self, store: ScoreStore) -> None:
        try:
            entries = store.top_k(self.limit)
        except StoreUnavailable as exc:
            logger.warning(f"[leaderboard-seed-failed] error={exc}")
            self.stale = True
            return
        with self._lock:
            # Events that arrived before the seed finished are newer than it
            merged: Tuple[LeaderboardEntry, ...] = tuple(entries[:self.limit])
            for e in self._entries:
                merged = merge_entry(merged, ScoreEvent(e.member, e.score), self.limit)
            self._entries = merged
        self.stale = False

    def attach(self, broadcaster: Broadcaster) -> Subscription:
        if self._subscription is None or not self._subscription.active:
            self._subscription = broadcaster.subscribe(self.apply)
        return self._subscription

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def apply(self, member: str, score: int) -> None:
        event = ScoreEvent.from_payload({'member': member, 'score': score})
        with self._lock:
            self._entries = merge_entry(self._entries, event, self.limit)

    @property
    def entries(self) -> List[LeaderboardEntry]:
        with self._lock:
            return list(self._entries)

    def to_list(self) -> list:
        return [e.to_dict() for e in self.entries]
