from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's mark for one session."""

    log_id: int
    student_id: int
    session_id: int
    status_id: int
    status_set: str
    remarks: str
    time_taken: datetime
    taken_by: int


@dataclass(frozen=True)
class AttendanceMark:
    """Write-model for an upsert; the store assigns (or keeps) the log id."""

    student_id: int
    session_id: int
    status_id: int
    status_set: str
    remarks: str
    time_taken: datetime
    taken_by: int
