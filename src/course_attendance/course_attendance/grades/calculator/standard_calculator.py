from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping, Optional

from ...statuses.model import Status
from .base import GradeCalculator

logger = logging.getLogger(__name__)


class StandardGradeCalculator(GradeCalculator):
    """Standard rule: sum(count * points) over (taken sessions * best visible points)."""

    def raw_grade(self, status_counts: Mapping[int, int], statuses: Mapping[int, Status]) -> Decimal:
        total = Decimal(0)
        for status_id, count in status_counts.items():
            status = statuses.get(status_id)
            if status is None:
                logger.warning("Log rows reference unknown status %s; counted as 0 points", status_id)
                continue
            total += status.grade * int(count)
        return total

    def max_grade(self, taken_sessions: int, top_status: Optional[Status]) -> Decimal:
        # No visible status left means there is no per-session maximum: grade as zero sessions.
        if top_status is None:
            return Decimal(0)
        return top_status.grade * int(taken_sessions)
