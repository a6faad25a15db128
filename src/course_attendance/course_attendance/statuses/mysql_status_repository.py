from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import Status
from .repository import StatusRepository

_COLUMNS = "status_id, instance_id, acronym, description, grade, visible, deleted"


def _to_status(r: dict) -> Status:
    return Status(
        status_id=int(r["status_id"]),
        instance_id=int(r["instance_id"]),
        acronym=r["acronym"],
        description=r["description"],
        grade=to_decimal(r["grade"]),
        visible=bool(r["visible"]),
        deleted=bool(r["deleted"]),
    )


class MySQLStatusRepository(StatusRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_instance(
        self,
        instance_id: int,
        *,
        only_visible: bool = True,
        include_deleted: bool = False,
    ) -> Sequence[Status]:
        clauses = ["instance_id=%s"]
        if only_visible:
            clauses.append("visible=1")
        if not include_deleted:
            clauses.append("deleted=0")
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_statuses
                WHERE {where}
                ORDER BY grade DESC, status_id ASC
                """,
                (int(instance_id),),
            )
            return [_to_status(r) for r in fetchall(cur)]

    def get_by_id(self, status_id: int) -> Optional[Status]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_statuses WHERE status_id=%s", (int(status_id),))
            r = fetchone(cur)
            return _to_status(r) if r else None

    def create(self, *, instance_id: int, acronym: str, description: str, grade: Decimal) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_statuses(instance_id, acronym, description, grade, visible, deleted)
                VALUES(%s,%s,%s,%s,1,0)
                """,
                (int(instance_id), acronym, description, grade),
            )
            return int(cur.lastrowid)

    def update(
        self,
        *,
        status_id: int,
        acronym: Optional[str] = None,
        description: Optional[str] = None,
        grade: Optional[Decimal] = None,
        visible: Optional[bool] = None,
    ) -> bool:
        sets: list[str] = []
        params: list[object] = []
        if acronym is not None:
            sets.append("acronym=%s")
            params.append(acronym)
        if description is not None:
            sets.append("description=%s")
            params.append(description)
        if grade is not None:
            sets.append("grade=%s")
            params.append(grade)
        if visible is not None:
            sets.append("visible=%s")
            params.append(1 if visible else 0)
        if not sets:
            return False

        params.append(int(status_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE attendance_statuses SET {', '.join(sets)} WHERE status_id=%s", tuple(params))
            return cur.rowcount > 0

    def soft_delete(self, status_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE attendance_statuses SET deleted=1 WHERE status_id=%s", (int(status_id),))
            return cur.rowcount > 0

    def count_logs(self, status_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS cnt FROM attendance_log WHERE status_id=%s", (int(status_id),))
            r = fetchone(cur)
            return int(r["cnt"]) if r else 0
