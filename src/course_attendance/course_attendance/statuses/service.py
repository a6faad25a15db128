from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Sequence

from ..common.request_cache import RequestMemo
from ..common.validators import require_decimal, require_non_empty
from ..core.exceptions import NotFoundError, ValidationError
from .model import Status
from .repository import StatusRepository

logger = logging.getLogger(__name__)


class StatusCatalog:
    """Ordered set of statuses per attendance instance.

    Listings are memoized for the current request only.
    """

    def __init__(self, statuses: StatusRepository):
        self._statuses = statuses
        self._listings = RequestMemo("status_listings")

    def clear_cache(self) -> None:
        self._listings.clear()

    def list_statuses(self, instance_id: int, *, only_visible: bool = True) -> Sequence[Status]:
        key = (int(instance_id), bool(only_visible))
        return self._listings.get_or_load(
            key, lambda: list(self._statuses.list_for_instance(int(instance_id), only_visible=only_visible))
        )

    def all_including_deleted(self, instance_id: int) -> dict[int, Status]:
        """Every status ever defined for the instance, keyed by id (for weighting old log rows)."""

        rows = self._statuses.list_for_instance(int(instance_id), only_visible=False, include_deleted=True)
        return {s.status_id: s for s in rows}

    def resolve(self, instance_id: int, text: str) -> Optional[Status]:
        """Find a status by acronym, falling back to description. Case-insensitive.

        Two separate passes keep the hierarchy predictable: an acronym match
        anywhere in the catalog beats a description match.
        """

        needle = (text or "").strip().casefold()
        if not needle:
            return None

        catalog = self.list_statuses(instance_id)
        for status in catalog:
            if status.acronym.casefold() == needle:
                return status
        for status in catalog:
            if status.description.casefold() == needle:
                return status
        return None

    def status_set(self, instance_id: int) -> str:
        """Comma-joined acronyms of the active catalog, stored with each log row."""

        return ",".join(s.acronym for s in self.list_statuses(instance_id))

    def highest(self, instance_id: int) -> Optional[Status]:
        catalog = self.list_statuses(instance_id)
        return catalog[0] if catalog else None

    def lowest(self, instance_id: int) -> Optional[Status]:
        catalog = self.list_statuses(instance_id)
        return catalog[-1] if catalog else None

    def add_status(self, *, instance_id: int, acronym: str, description: str, grade) -> int:
        acronym = require_non_empty(acronym, "Acronym")
        description = require_non_empty(description, "Description")
        points = require_decimal(grade, "Grade")

        existing = self._statuses.list_for_instance(int(instance_id), only_visible=False)
        if any(s.acronym.casefold() == acronym.casefold() for s in existing):
            raise ValidationError("A status with this acronym already exists")

        status_id = self._statuses.create(
            instance_id=int(instance_id), acronym=acronym, description=description, grade=points
        )
        self.clear_cache()
        logger.info("Status added to instance %s: %s: %s (%s)", instance_id, acronym, description, points)
        return status_id

    def update_status(
        self,
        *,
        status_id: int,
        acronym: Optional[str] = None,
        description: Optional[str] = None,
        grade=None,
        visible: Optional[bool] = None,
    ) -> None:
        status = self._statuses.get_by_id(int(status_id))
        if not status or status.deleted:
            raise NotFoundError("Status does not exist")

        acronym = acronym.strip() if acronym else None
        description = description.strip() if description else None
        points: Optional[Decimal] = require_decimal(grade, "Grade") if grade is not None else None

        if acronym and acronym.casefold() != status.acronym.casefold():
            siblings = self._statuses.list_for_instance(status.instance_id, only_visible=False)
            if any(s.acronym.casefold() == acronym.casefold() for s in siblings if s.status_id != status.status_id):
                raise ValidationError("A status with this acronym already exists")

        self._statuses.update(
            status_id=status.status_id,
            acronym=acronym,
            description=description,
            grade=points,
            visible=visible,
        )
        self.clear_cache()

    def remove_status(self, status_id: int) -> None:
        """Soft delete: the row stays so old log entries keep their meaning."""

        if not self._statuses.soft_delete(int(status_id)):
            raise NotFoundError("Status does not exist")
        self.clear_cache()

    def has_logs(self, status_id: int) -> bool:
        return self._statuses.count_logs(int(status_id)) > 0
