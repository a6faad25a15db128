from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import Status


class StatusRepository(Protocol):
    def list_for_instance(
        self,
        instance_id: int,
        *,
        only_visible: bool = True,
        include_deleted: bool = False,
    ) -> Sequence[Status]:
        """Statuses ordered by descending grade (ties by id)."""

        raise NotImplementedError

    def get_by_id(self, status_id: int) -> Optional[Status]:
        raise NotImplementedError

    def create(self, *, instance_id: int, acronym: str, description: str, grade: Decimal) -> int:
        raise NotImplementedError

    def update(
        self,
        *,
        status_id: int,
        acronym: Optional[str] = None,
        description: Optional[str] = None,
        grade: Optional[Decimal] = None,
        visible: Optional[bool] = None,
    ) -> bool:
        raise NotImplementedError

    def soft_delete(self, status_id: int) -> bool:
        raise NotImplementedError

    def count_logs(self, status_id: int) -> int:
        raise NotImplementedError
