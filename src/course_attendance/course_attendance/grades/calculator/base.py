from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from fractions import Fraction
from typing import Mapping, Optional

from ...statuses.model import Status


class GradeCalculator(ABC):
    """Calculator interface (Strategy Pattern for attendance grading)."""

    @abstractmethod
    def raw_grade(self, status_counts: Mapping[int, int], statuses: Mapping[int, Status]) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def max_grade(self, taken_sessions: int, top_status: Optional[Status]) -> Decimal:
        raise NotImplementedError

    def fraction(self, raw_grade: Decimal, max_grade: Decimal) -> Fraction:
        if max_grade == 0:
            return Fraction(0)
        # Hidden statuses may outweigh the visible top one, and points may be negative.
        return min(max(Fraction(raw_grade) / Fraction(max_grade), Fraction(0)), Fraction(1))
