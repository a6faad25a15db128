from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.request_cache import RequestMemo
from ..core.constants import LIVE_TIME_ADJUSTMENT_SECONDS
from ..core.exceptions import NotFoundError, ValidationError
from .model import NewSession, Session
from .repository import SessionRepository

logger = logging.getLogger(__name__)


class SessionService:
    def __init__(self, sessions: SessionRepository):
        self._sessions = sessions
        self._info = RequestMemo("session_info")

    def clear_cache(self) -> None:
        self._info.clear()

    def get_session_info(self, session_id: int) -> Session:
        session_id = int(session_id)

        def load() -> Session:
            session = self._sessions.get_by_id(session_id)
            if not session:
                raise NotFoundError("Session does not exist")
            return session

        return self._info.get_or_load(session_id, load)

    def find_covering(self, instance_id: int, at: datetime) -> Optional[Session]:
        return self._sessions.find_covering(instance_id=int(instance_id), at=at)

    def find_most_recent_start(self, instance_id: int, *, before_or_at: datetime | None = None) -> Optional[datetime]:
        return self._sessions.find_most_recent_start(
            instance_id=int(instance_id), before_or_at=before_or_at or now_local()
        )

    def list_in_window(
        self,
        instance_id: int,
        start: datetime,
        end: datetime,
        *,
        group_id: Optional[int] = None,
    ) -> Sequence[Session]:
        if end < start:
            raise ValidationError("End of window must not be before its start")
        return self._sessions.list_in_window(instance_id=int(instance_id), start=start, end=end, group_id=group_id)

    def list_live_sessions(self, instance_id: int, *, now: datetime | None = None) -> Sequence[Session]:
        """Today's sessions that have started, or start within the live-take adjustment."""

        now = now or now_local()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        horizon = now + timedelta(seconds=LIVE_TIME_ADJUSTMENT_SECONDS)
        return self._sessions.list_in_window(instance_id=int(instance_id), start=midnight, end=horizon)

    def mark_session_updated(self, session_id: int, *, taken_by: int, at: datetime | None = None) -> None:
        """Note the last time attendance was taken for the session."""

        at = at or now_local()
        if not self._sessions.set_last_taken(session_id=int(session_id), at=at, taken_by=int(taken_by)):
            raise NotFoundError("Session does not exist")
        self._info.pop(int(session_id))

    def add_sessions(self, instance_id: int, sessions: Iterable[NewSession]) -> list[int]:
        ids: list[int] = []
        for sess in sessions:
            if sess.duration < 0:
                raise ValidationError("Session duration must not be negative")
            ids.append(self._sessions.create(instance_id=int(instance_id), session=sess))
        logger.info("Sessions added to instance %s: %s", instance_id, ids)
        return ids

    def update_durations(self, session_ids: Sequence[int], duration: int) -> None:
        if not session_ids:
            return
        if int(duration) < 0:
            raise ValidationError("Session duration must not be negative")
        self._sessions.update_duration(session_ids=session_ids, duration=int(duration), modified_at=now_local())
        for sid in session_ids:
            self._info.pop(int(sid))
        logger.info("Sessions duration updated: %s -> %ss", list(session_ids), duration)

    def delete_sessions(self, session_ids: Sequence[int]) -> None:
        if not session_ids:
            return
        self._sessions.delete(session_ids=session_ids)
        for sid in session_ids:
            self._info.pop(int(sid))
        logger.info("Sessions deleted: %s", list(session_ids))
