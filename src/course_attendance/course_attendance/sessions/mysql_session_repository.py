from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import NewSession, Session
from .repository import SessionRepository

_COLUMNS = "session_id, instance_id, group_id, start_time, duration, description, lasttaken, lasttakenby"
_END = "DATE_ADD(start_time, INTERVAL duration SECOND)"


def _to_session(r: dict) -> Session:
    return Session(
        session_id=int(r["session_id"]),
        instance_id=int(r["instance_id"]),
        start_time=r["start_time"],
        duration=int(r["duration"]),
        group_id=int(r.get("group_id") or 0),
        description=r.get("description") or "",
        last_taken=r.get("lasttaken"),
        last_taken_by=int(r["lasttakenby"]) if r.get("lasttakenby") is not None else None,
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def find_covering(self, *, instance_id: int, at: datetime) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE instance_id=%s
                  AND %s BETWEEN start_time AND {_END}
                ORDER BY {_END} ASC, session_id ASC
                LIMIT 1
                """,
                (int(instance_id), at),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def find_most_recent_start(self, *, instance_id: int, before_or_at: datetime) -> Optional[datetime]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT start_time
                FROM attendance_sessions
                WHERE instance_id=%s AND start_time <= %s
                ORDER BY start_time DESC
                LIMIT 1
                """,
                (int(instance_id), before_or_at),
            )
            r = fetchone(cur)
            return r["start_time"] if r else None

    def list_in_window(
        self,
        *,
        instance_id: int,
        start: datetime,
        end: datetime,
        group_id: Optional[int] = None,
    ) -> Sequence[Session]:
        clauses = ["instance_id=%s", "start_time >= %s", "start_time < %s"]
        params: list[object] = [int(instance_id), start, end]
        if group_id is not None:
            clauses.append("group_id=%s")
            params.append(int(group_id))
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE {where}
                ORDER BY start_time ASC, session_id ASC
                """,
                tuple(params),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def create(self, *, instance_id: int, session: NewSession) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_sessions(instance_id, group_id, start_time, duration, description, timemodified)
                VALUES(%s,%s,%s,%s,%s,NOW())
                """,
                (int(instance_id), int(session.group_id), session.start_time, int(session.duration), session.description),
            )
            return int(cur.lastrowid)

    def set_last_taken(self, *, session_id: int, at: datetime, taken_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_sessions SET lasttaken=%s, lasttakenby=%s WHERE session_id=%s",
                (at, int(taken_by), int(session_id)),
            )
            return cur.rowcount > 0

    def update_duration(self, *, session_ids: Sequence[int], duration: int, modified_at: datetime) -> int:
        ids_sql, ids = in_clause([int(s) for s in session_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE attendance_sessions SET duration=%s, timemodified=%s WHERE session_id {ids_sql}",
                (int(duration), modified_at) + ids,
            )
            return cur.rowcount

    def delete(self, *, session_ids: Sequence[int]) -> int:
        ids_sql, ids = in_clause([int(s) for s in session_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM attendance_log WHERE session_id {ids_sql}", ids)
            cur.execute(f"DELETE FROM attendance_sessions WHERE session_id {ids_sql}", ids)
            return cur.rowcount
