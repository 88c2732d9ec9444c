import logging
import threading
import time
import uuid
from typing import Dict, List, Optional

from .session import GameSession

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    pass


class SessionRegistry:
    """Live sessions of this process, keyed by an opaque session id.

    A session nobody has touched for ``idle_timeout`` seconds is ended the
    next time a session is created, so HTTP-only players that walk away do
    not keep a leaderboard subscription alive forever.
    """

    def __init__(self, services, idle_timeout: Optional[float] = None, clock=time.monotonic):
        self._services = services
        self.idle_timeout = idle_timeout
        self.clock = clock
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self, player: str, rng=None) -> GameSession:
        svc = self._services
        session = GameSession(
            session_id=uuid.uuid4().hex,
            player=player,
            catalog=svc.catalog,
            store=svc.store,
            broadcaster=svc.broadcaster,
            rules=svc.rules,
            rng=rng,
        )
        self.reap_idle()
        session.leaderboard.limit = svc.leaderboard_size
        session.last_active = self.clock()
        session.open()
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> GameSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        session.last_active = self.clock()
        return session

    def end(self, session_id: str) -> Optional[GameSession]:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.close()
        return session

    def end_all(self) -> List[str]:
        with self._lock:
            ended = list(self._sessions)
        for sid in ended:
            self.end(sid)
        return ended

    def reap_idle(self) -> List[str]:
        if not self.idle_timeout or self.idle_timeout <= 0:
            return []
        cutoff = self.clock() - self.idle_timeout
        with self._lock:
            idle = [sid for sid, s in self._sessions.items() if s.last_active < cutoff]
        for sid in idle:
            logger.info(f"[session-idle] session={sid} timeout={self.idle_timeout}s")
            self.end(sid)
        return idle
