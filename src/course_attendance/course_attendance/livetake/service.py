from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..attendance.service import AttendanceLog
from ..common.datetime_utils import format_userdate, now_local
from ..core.constants import REMARK_IN_CLASS
from ..core.enums import LiveResultStatus, LookupMode
from ..core.exceptions import GradebookPushFailed, NotFoundError, ValidationError
from ..grades.service import GradeAggregator
from ..instances.model import AttendanceInstance
from ..sessions.service import SessionService
from ..statuses.service import StatusCatalog
from ..users.model import Student
from ..users.service import IdentityDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiveCheckoffRequest:
    mode: str
    raw_value: str
    session_id: int


@dataclass(frozen=True)
class LiveCheckoffResult:
    status: LiveResultStatus
    uid: str = ""
    message: str = ""
    firstname: str = ""
    lastname: str = ""
    userdate: str = ""

    @property
    def ok(self) -> bool:
        return self.status == LiveResultStatus.SUCCESS

    def to_payload(self) -> dict:
        if self.ok:
            return {
                "status": self.status.value,
                "firstname": self.firstname,
                "lastname": self.lastname,
                "userdate": self.userdate,
            }
        return {"status": self.status.value, "uid": self.uid, "message": self.message}


class LiveCheckoffGateway:
    """Use case: mark one scanned student present while the class is running.

    Everything the student's scan touches is written in the same call: the
    student's mark, the absent default for everyone else in the session, the
    session's last-taken stamp and the affected grades. Failures come back as
    an ``importerror`` result; ``check_off`` never raises. A gradebook outage
    after the marks are saved is only logged.
    """

    def __init__(
        self,
        directory: IdentityDirectory,
        catalog: StatusCatalog,
        sessions: SessionService,
        log: AttendanceLog,
        grades: GradeAggregator,
    ):
        self._directory = directory
        self._catalog = catalog
        self._sessions = sessions
        self._log = log
        self._grades = grades

    def _lookup(self, request: LiveCheckoffRequest) -> Student:
        if request.mode == LookupMode.ID_NUMBER.value:
            user: Optional[Student] = self._directory.resolve_by_idnumber(request.raw_value)
        elif request.mode == LookupMode.USER_ID.value:
            try:
                user_id = int(str(request.raw_value).strip())
            except ValueError:
                raise ValidationError("User id must be a number")
            user = self._directory.get_user(user_id)
        else:
            raise ValidationError("invalid mode")

        if user is None:
            raise NotFoundError("No user matches the given identifier")
        return user

    def check_off(
        self, instance: AttendanceInstance, request: LiveCheckoffRequest, *, acting_user_id: int
    ) -> LiveCheckoffResult:
        try:
            return self._check_off(instance, request, acting_user_id)
        except Exception as e:
            logger.exception("Live check-off failed for %r in session %s", request.raw_value, request.session_id)
            return LiveCheckoffResult(
                status=LiveResultStatus.IMPORT_ERROR,
                uid=str(request.raw_value),
                message=str(e) or e.__class__.__name__,
            )

    def _check_off(
        self, instance: AttendanceInstance, request: LiveCheckoffRequest, acting_user_id: int
    ) -> LiveCheckoffResult:
        student = self._lookup(request)

        session = self._sessions.get_session_info(request.session_id)
        if session.instance_id != instance.instance_id:
            raise ValidationError("Session does not belong to this attendance")

        present = self._catalog.highest(instance.instance_id)
        absent = self._catalog.lowest(instance.instance_id)
        if present is None or absent is None:
            raise ValidationError("No visible statuses are configured")

        now = now_local()
        userdate = format_userdate(now)

        self._log.upsert(
            instance_id=instance.instance_id,
            student_id=student.user_id,
            session_id=session.session_id,
            status_id=present.status_id,
            remarks=REMARK_IN_CLASS.format(date=userdate),
            acting_user_id=acting_user_id,
            at=now,
        )
        written = [student.user_id]
        written.extend(self._log.fill_absentees(instance, session.session_id, absent, acting_user_id=acting_user_id))
        self._sessions.mark_session_updated(session.session_id, taken_by=acting_user_id, at=now)

        self._grades.forget(instance, written)
        try:
            self._grades.update_grades(instance, written)
        except GradebookPushFailed as e:
            # The marks are committed; the next recalculation catches the gradebook up.
            logger.error("Live check-off in session %s saved without a grade update: %s", session.session_id, e)

        logger.info("Live check-off: user %s present in session %s", student.user_id, session.session_id)
        return LiveCheckoffResult(
            status=LiveResultStatus.SUCCESS,
            firstname=student.firstname,
            lastname=student.lastname,
            userdate=userdate,
        )
