from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceMark, AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "log_id, student_id, session_id, status_id, statusset, remarks, timetaken, takenby"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        log_id=int(r["log_id"]),
        student_id=int(r["student_id"]),
        session_id=int(r["session_id"]),
        status_id=int(r["status_id"]),
        status_set=r.get("statusset") or "",
        remarks=r.get("remarks") or "",
        time_taken=r["timetaken"],
        taken_by=int(r["takenby"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_student_and_session(self, *, student_id: int, session_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_log
                WHERE student_id=%s AND session_id=%s
                """,
                (int(student_id), int(session_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def upsert(self, mark: AttendanceMark) -> None:
        # uq_log_student_session makes this a single atomic insert-or-update.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_log(student_id, session_id, status_id, statusset, remarks, timetaken, takenby)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status_id=VALUES(status_id),
                    statusset=VALUES(statusset),
                    remarks=VALUES(remarks),
                    timetaken=VALUES(timetaken),
                    takenby=VALUES(takenby)
                """,
                (
                    int(mark.student_id),
                    int(mark.session_id),
                    int(mark.status_id),
                    mark.status_set,
                    mark.remarks,
                    mark.time_taken,
                    int(mark.taken_by),
                ),
            )

    def insert_if_absent(self, mark: AttendanceMark) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_log(student_id, session_id, status_id, statusset, remarks, timetaken, takenby)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(mark.student_id),
                        int(mark.session_id),
                        int(mark.status_id),
                        mark.status_set,
                        mark.remarks,
                        mark.time_taken,
                        int(mark.taken_by),
                    ),
                )
        except mysql.connector.IntegrityError as e:
            # Someone marked the student since we looked; their mark stays.
            if e.errno == errorcode.ER_DUP_ENTRY:
                return False
            raise
        return True

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_log WHERE session_id=%s ORDER BY student_id ASC",
                (int(session_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def student_ids_for_session(self, session_id: int) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT student_id FROM attendance_log WHERE session_id=%s", (int(session_id),))
            return {int(r["student_id"]) for r in fetchall(cur)}

    def status_counts(self, *, instance_id: int, student_id: int, since: datetime) -> dict[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT al.status_id, COUNT(al.status_id) AS stcnt
                FROM attendance_log al
                JOIN attendance_sessions ats ON al.session_id = ats.session_id
                WHERE ats.instance_id=%s
                  AND ats.start_time >= %s
                  AND al.student_id=%s
                GROUP BY al.status_id
                """,
                (int(instance_id), since, int(student_id)),
            )
            return {int(r["status_id"]): int(r["stcnt"]) for r in fetchall(cur)}

    def taken_sessions_count(self, *, instance_id: int, student_id: int, since: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt
                FROM attendance_log al
                JOIN attendance_sessions ats ON al.session_id = ats.session_id
                WHERE ats.instance_id=%s
                  AND ats.start_time >= %s
                  AND al.student_id=%s
                """,
                (int(instance_id), since, int(student_id)),
            )
            r = fetchone(cur)
            return int(r["cnt"]) if r else 0
