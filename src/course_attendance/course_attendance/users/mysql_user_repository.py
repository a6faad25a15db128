from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Student
from .repository import UserRepository


def _to_student(row: dict) -> Student:
    return Student(
        user_id=int(row["user_id"]),
        username=row["username"],
        firstname=row["firstname"],
        lastname=row["lastname"],
        idnumber=row.get("idnumber") or "",
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, username, firstname, lastname, idnumber
                FROM users
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return _to_student(row) if row else None

    def get_by_idnumber(self, idnumber: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, username, firstname, lastname, idnumber
                FROM users
                WHERE idnumber=%s AND idnumber <> ''
                ORDER BY user_id ASC
                LIMIT 1
                """,
                (idnumber,),
            )
            row = fetchone(cur)
            return _to_student(row) if row else None

    def get_by_profile_field(self, *, shortname: str, value: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.username, u.firstname, u.lastname, u.idnumber
                FROM users u
                JOIN user_info_data d ON d.user_id = u.user_id
                JOIN user_info_field f ON f.field_id = d.field_id
                WHERE f.shortname=%s AND d.data=%s
                ORDER BY u.user_id ASC
                LIMIT 1
                """,
                (shortname, value),
            )
            row = fetchone(cur)
            return _to_student(row) if row else None

    def list_enrolled(self, *, course_id: int, group_id: int = 0) -> Sequence[Student]:
        params: list[object] = [Role.STUDENT.value, int(course_id)]
        group_join = ""
        if group_id:
            group_join = "JOIN group_members gm ON gm.user_id = u.user_id AND gm.group_id=%s"
            params.insert(0, int(group_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.user_id, u.username, u.firstname, u.lastname, u.idnumber
                FROM users u
                {group_join}
                JOIN course_enrolments ce ON ce.user_id = u.user_id AND ce.role=%s
                WHERE ce.course_id=%s
                ORDER BY u.lastname ASC, u.firstname ASC
                """,
                tuple(params),
            )
            return [_to_student(r) for r in fetchall(cur)]
