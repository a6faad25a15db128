from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceMark, AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_student_and_session(self, *, student_id: int, session_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert(self, mark: AttendanceMark) -> None:
        """Insert or update the row keyed by (student_id, session_id) in one statement.

        An existing row keeps its log id.
        """

        raise NotImplementedError

    def insert_if_absent(self, mark: AttendanceMark) -> bool:
        """Insert the row only when the pair has no mark yet. Returns False if one already exists.

        Never modifies an existing row, even one written by a concurrent request.
        """

        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def student_ids_for_session(self, session_id: int) -> set[int]:
        raise NotImplementedError

    def status_counts(self, *, instance_id: int, student_id: int, since: datetime) -> dict[int, int]:
        """status_id -> number of the student's records in sessions starting at/after ``since``."""

        raise NotImplementedError

    def taken_sessions_count(self, *, instance_id: int, student_id: int, since: datetime) -> int:
        raise NotImplementedError
