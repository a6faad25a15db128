from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Protocol

from ..common.datetime_utils import now_local
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor


class GradebookSink(Protocol):
    def push(self, *, course_id: int, instance_id: int, grades: Mapping[int, Decimal]) -> None:
        """Store raw grades per user. All or nothing; raise on failure."""

        raise NotImplementedError


class MySQLGradebookSink(GradebookSink):
    """Gradebook backed by the ``attendance_grades`` table."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def push(self, *, course_id: int, instance_id: int, grades: Mapping[int, Decimal]) -> None:
        if not grades:
            return
        now = now_local()
        rows = [(int(course_id), int(instance_id), int(uid), grade, now) for uid, grade in grades.items()]
        # One transaction: db_cursor rolls back everything if any row fails.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO attendance_grades(course_id, instance_id, user_id, rawgrade, timemodified)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE rawgrade=VALUES(rawgrade), timemodified=VALUES(timemodified)
                """,
                rows,
            )
