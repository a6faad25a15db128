from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import NewSession, Session


class SessionRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[Session]:
        raise NotImplementedError

    def find_covering(self, *, instance_id: int, at: datetime) -> Optional[Session]:
        """Session whose [start, start + duration] contains ``at``.

        When several overlap, the one ending soonest wins.
        """

        raise NotImplementedError

    def find_most_recent_start(self, *, instance_id: int, before_or_at: datetime) -> Optional[datetime]:
        raise NotImplementedError

    def list_in_window(
        self,
        *,
        instance_id: int,
        start: datetime,
        end: datetime,
        group_id: Optional[int] = None,
    ) -> Sequence[Session]:
        raise NotImplementedError

    def create(self, *, instance_id: int, session: NewSession) -> int:
        raise NotImplementedError

    def set_last_taken(self, *, session_id: int, at: datetime, taken_by: int) -> bool:
        raise NotImplementedError

    def update_duration(self, *, session_ids: Sequence[int], duration: int, modified_at: datetime) -> int:
        raise NotImplementedError

    def delete(self, *, session_ids: Sequence[int]) -> int:
        """Delete sessions together with their log rows. Returns sessions removed."""

        raise NotImplementedError
