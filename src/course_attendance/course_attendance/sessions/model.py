from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


@dataclass(frozen=True)
class Session:
    """Domain entity: one scheduled time window of an attendance instance."""

    session_id: int
    instance_id: int
    start_time: datetime
    duration: int  # seconds
    group_id: int = 0
    description: str = ""
    last_taken: Optional[datetime] = None
    last_taken_by: Optional[int] = None

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(seconds=self.duration)

    def covers(self, at: datetime) -> bool:
        return self.start_time <= at <= self.end_time


@dataclass(frozen=True)
class NewSession:
    start_time: datetime
    duration: int
    group_id: int = 0
    description: str = ""
