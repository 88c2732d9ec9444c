import logging
from typing import List, NamedTuple, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from clueboard.errors import StoreUnavailable
from clueboard.models import ScoreRecord, utcnow

logger = logging.getLogger(__name__)


class LeaderboardEntry(NamedTuple):
    member: str
    score: int

    def to_dict(self):
        return {'member': self.member, 'score': self.score}


class ScoreStore:
    """Durable member -> score ranking backed by the ``score_record`` table.

    Every write runs in its own transaction, so upserts for different members
    never interleave. Two writers racing on the same new member resolve as
    last-write-wins.
    """

    def __init__(self, session):
        self._session = session

    def _write(self, member: str, score: int) -> None:
        record = self._session.query(ScoreRecord).filter_by(member=member).first()
        if record is None:
            now = utcnow()
            self._session.add(ScoreRecord(member=member, score=score, achieved_at=now, updated_at=now))
        elif record.score != score:
            record.score = score
            record.achieved_at = utcnow()
        self._session.commit()

    def upsert(self, member: str, score: int) -> None:
        """Set ``member``'s score, replacing any previous value."""
        try:
            try:
                self._write(member, score)
            except IntegrityError:
                # Another session inserted this member first; update its row instead
                self._session.rollback()
                self._write(member, score)
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.warning(f"[store-unavailable] op=upsert member={member} error={exc}")
            raise StoreUnavailable(str(exc)) from exc

    def top_k(self, k: int) -> List[LeaderboardEntry]:
        """Highest scores first; equal scores keep the order they were reached in."""
        if k <= 0:
            return []
        try:
            rows = (
                self._session.query(ScoreRecord)
                .order_by(ScoreRecord.score.desc(), ScoreRecord.achieved_at.asc(), ScoreRecord.id.asc())
                .limit(k)
                .all()
            )
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.warning(f"[store-unavailable] op=top_k k={k} error={exc}")
            raise StoreUnavailable(str(exc)) from exc
        return [LeaderboardEntry(r.member, r.score) for r in rows]

    def get(self, member: str) -> Optional[int]:
        try:
            record = self._session.query(ScoreRecord).filter_by(member=member).first()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreUnavailable(str(exc)) from exc
        return record.score if record else None

    def reset(self) -> int:
        try:
            removed = self._session.query(ScoreRecord).delete()
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreUnavailable(str(exc)) from exc
        logger.info(f"[store-reset] removed={removed}")
        return removed
