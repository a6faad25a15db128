from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.exceptions import ValidationError
from ..instances.model import AttendanceInstance
from ..sessions.service import SessionService
from ..statuses.model import Status
from ..statuses.service import StatusCatalog
from ..users.service import IdentityDirectory
from .model import AttendanceMark, AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceLog:
    def __init__(
        self,
        attendance: AttendanceRepository,
        catalog: StatusCatalog,
        sessions: SessionService,
        directory: IdentityDirectory,
        grades=None,
    ):
        self._attendance = attendance
        self._catalog = catalog
        self._sessions = sessions
        self._directory = directory
        self._grades = grades

    def upsert(
        self,
        *,
        instance_id: int,
        student_id: int,
        session_id: int,
        status_id: int,
        remarks: str = "",
        acting_user_id: int,
        at: datetime | None = None,
    ) -> None:
        """Record a student's status for a session; a second write for the pair overwrites the first."""

        self._attendance.upsert(
            self._build_mark(
                instance_id=instance_id,
                student_id=student_id,
                session_id=session_id,
                status_id=status_id,
                remarks=remarks,
                acting_user_id=acting_user_id,
                at=at,
            )
        )

    def _build_mark(
        self,
        *,
        instance_id: int,
        student_id: int,
        session_id: int,
        status_id: int,
        remarks: str,
        acting_user_id: int,
        at: datetime | None,
    ) -> AttendanceMark:
        active = {s.status_id for s in self._catalog.list_statuses(instance_id, only_visible=False)}
        if int(status_id) not in active:
            raise ValidationError("Status does not belong to this attendance")

        return AttendanceMark(
            student_id=int(student_id),
            session_id=int(session_id),
            status_id=int(status_id),
            status_set=self._catalog.status_set(instance_id),
            remarks=remarks or "",
            time_taken=at or now_local(),
            taken_by=int(acting_user_id),
        )

    def fill_absentees(
        self,
        instance: AttendanceInstance,
        session_id: int,
        status: Status,
        *,
        acting_user_id: int,
        remarks: str = "",
    ) -> list[int]:
        """Give ``status`` to every enrolled student without a mark for the session.

        Existing marks are never touched. Returns the ids of students filled in.
        """

        session = self._sessions.get_session_info(session_id)
        recorded = self._attendance.student_ids_for_session(session.session_id)
        students = self._directory.list_enrolled(course_id=instance.course_id, group_id=session.group_id)

        filled: list[int] = []
        now = now_local()
        for student in students:
            if student.user_id in recorded:
                continue
            mark = self._build_mark(
                instance_id=instance.instance_id,
                student_id=student.user_id,
                session_id=session.session_id,
                status_id=status.status_id,
                remarks=remarks,
                acting_user_id=acting_user_id,
                at=now,
            )
            # The pre-read only skips known marks; the insert itself refuses to overwrite.
            if self._attendance.insert_if_absent(mark):
                filled.append(student.user_id)

        if filled:
            logger.info("Filled %d empty records of session %s with %s", len(filled), session_id, status.acronym)
        return filled

    def get_session_log(self, session_id: int) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_session(int(session_id))

    def get_record(self, *, student_id: int, session_id: int) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_student_and_session(student_id=int(student_id), session_id=int(session_id))

    def take_from_form(
        self,
        instance: AttendanceInstance,
        session_id: int,
        marks: Mapping[int, int],
        *,
        acting_user_id: int,
        remarks: Optional[Mapping[int, str]] = None,
    ) -> list[int]:
        """Bulk take: ``marks`` maps student id -> status id for one session."""

        session = self._sessions.get_session_info(session_id)
        if session.instance_id != instance.instance_id:
            raise ValidationError("Session does not belong to this attendance")

        remarks = remarks or {}
        now = now_local()
        updated: list[int] = []
        for student_id, status_id in marks.items():
            if not status_id:
                continue
            self.upsert(
                instance_id=instance.instance_id,
                student_id=int(student_id),
                session_id=session.session_id,
                status_id=int(status_id),
                remarks=remarks.get(student_id, ""),
                acting_user_id=acting_user_id,
                at=now,
            )
            updated.append(int(student_id))

        self._sessions.mark_session_updated(session.session_id, taken_by=acting_user_id, at=now)
        if self._grades is not None and updated:
            self._grades.forget(instance, updated)
            self._grades.update_grades(instance, updated)

        logger.info("Attendance taken for session %s by %s: %d marks", session_id, acting_user_id, len(updated))
        return updated
