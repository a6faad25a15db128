from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class AttendanceInstance:
    """Domain entity: one attendance activity inside a course."""

    instance_id: int
    course_id: int
    name: str
    max_grade: Decimal
    course_start: datetime
    last_import: str = ""
