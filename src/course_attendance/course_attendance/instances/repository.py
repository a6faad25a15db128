from __future__ import annotations

from typing import Optional, Protocol

from .model import AttendanceInstance


class InstanceRepository(Protocol):
    def get_by_id(self, instance_id: int) -> Optional[AttendanceInstance]:
        raise NotImplementedError

    def set_last_import(self, *, instance_id: int, text: str) -> None:
        """Persist the retry buffer of the import form."""

        raise NotImplementedError
