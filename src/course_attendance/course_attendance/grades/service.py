from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import Iterable, Optional

from ..attendance.repository import AttendanceRepository
from ..common.request_cache import RequestMemo
from ..core.exceptions import GradebookPushFailed
from ..instances.model import AttendanceInstance
from ..statuses.service import StatusCatalog
from ..users.service import IdentityDirectory
from .calculator.base import GradeCalculator
from .calculator.standard_calculator import StandardGradeCalculator
from .gradebook import GradebookSink

logger = logging.getLogger(__name__)

_GRADE_PLACES = Decimal("0.00001")


@dataclass(frozen=True)
class UserStat:
    completed: int
    statuses: dict[int, int]


class GradeAggregator:
    """Converts a student's weighted status counts into a gradebook grade.

    Per-user counts are memoized for the current request.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        catalog: StatusCatalog,
        gradebook: GradebookSink,
        directory: Optional[IdentityDirectory] = None,
        *,
        calculator: Optional[GradeCalculator] = None,
    ):
        self._attendance = attendance
        self._catalog = catalog
        self._gradebook = gradebook
        self._directory = directory
        self._calculator = calculator or StandardGradeCalculator()
        self._taken = RequestMemo("taken_sessions")
        self._stats = RequestMemo("status_counts")

    def clear_cache(self) -> None:
        self._taken.clear()
        self._stats.clear()

    def forget(self, instance: AttendanceInstance, student_ids: Iterable[int]) -> None:
        """Drop memoized counts for students whose log rows just changed."""

        for sid in student_ids:
            key = (instance.instance_id, int(sid))
            self._taken.pop(key)
            self._stats.pop(key)

    def taken_sessions_count(self, instance: AttendanceInstance, student_id: int) -> int:
        key = (instance.instance_id, int(student_id))
        return self._taken.get_or_load(
            key,
            lambda: self._attendance.taken_sessions_count(
                instance_id=instance.instance_id, student_id=int(student_id), since=instance.course_start
            ),
        )

    def statuses_stat(self, instance: AttendanceInstance, student_id: int) -> dict[int, int]:
        key = (instance.instance_id, int(student_id))
        return self._stats.get_or_load(
            key,
            lambda: self._attendance.status_counts(
                instance_id=instance.instance_id, student_id=int(student_id), since=instance.course_start
            ),
        )

    def user_stat(self, instance: AttendanceInstance, student_id: int) -> UserStat:
        return UserStat(
            completed=self.taken_sessions_count(instance, student_id),
            statuses=dict(self.statuses_stat(instance, student_id)),
        )

    def user_grade(self, instance: AttendanceInstance, student_id: int) -> Decimal:
        # Deleted and hidden statuses still weigh the rows recorded with them.
        statuses = self._catalog.all_including_deleted(instance.instance_id)
        return self._calculator.raw_grade(self.statuses_stat(instance, student_id), statuses)

    def user_max_grade(self, instance: AttendanceInstance, student_id: int) -> Decimal:
        top = self._catalog.highest(instance.instance_id)
        return self._calculator.max_grade(self.taken_sessions_count(instance, student_id), top)

    def grade_fraction(self, instance: AttendanceInstance, student_id: int) -> Fraction:
        return self._calculator.fraction(
            self.user_grade(instance, student_id),
            self.user_max_grade(instance, student_id),
        )

    def scaled_grade(self, instance: AttendanceInstance, student_id: int) -> Decimal:
        scaled = self.grade_fraction(instance, student_id) * Fraction(instance.max_grade)
        return (Decimal(scaled.numerator) / Decimal(scaled.denominator)).quantize(_GRADE_PLACES)

    def update_grades(self, instance: AttendanceInstance, student_ids: Iterable[int]) -> dict[int, Decimal]:
        grades = {int(sid): self.scaled_grade(instance, sid) for sid in dict.fromkeys(student_ids)}
        if not grades:
            return grades

        try:
            self._gradebook.push(course_id=instance.course_id, instance_id=instance.instance_id, grades=grades)
        except Exception as e:
            logger.error("Gradebook push failed for instance %s (%d users): %s", instance.instance_id, len(grades), e)
            raise GradebookPushFailed(f"Gradebook rejected the update: {e}") from e

        logger.info("Grades updated for instance %s: %d users", instance.instance_id, len(grades))
        return grades

    def update_all_grades(self, instance: AttendanceInstance) -> dict[int, Decimal]:
        if self._directory is None:
            raise RuntimeError("GradeAggregator needs an IdentityDirectory to list enrolled students")
        students = self._directory.list_enrolled(course_id=instance.course_id)
        return self.update_grades(instance, [s.user_id for s in students])
