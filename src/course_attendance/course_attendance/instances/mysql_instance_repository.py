from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, to_decimal
from .model import AttendanceInstance
from .repository import InstanceRepository


class MySQLInstanceRepository(InstanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, instance_id: int) -> Optional[AttendanceInstance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ai.instance_id, ai.course_id, ai.name, ai.grade, ai.lastimport, c.start_date
                FROM attendance_instances ai
                JOIN courses c ON c.course_id = ai.course_id
                WHERE ai.instance_id=%s
                """,
                (int(instance_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceInstance(
                instance_id=int(r["instance_id"]),
                course_id=int(r["course_id"]),
                name=r["name"],
                max_grade=to_decimal(r["grade"]),
                course_start=r["start_date"],
                last_import=r.get("lastimport") or "",
            )

    def set_last_import(self, *, instance_id: int, text: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_instances SET lastimport=%s WHERE instance_id=%s",
                (text, int(instance_id)),
            )
