from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Status:
    """Domain entity: a weighted attendance outcome (Present, Late, ...)."""

    status_id: int
    instance_id: int
    acronym: str
    description: str
    grade: Decimal
    visible: bool = True
    deleted: bool = False
