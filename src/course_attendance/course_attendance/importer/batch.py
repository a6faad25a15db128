from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..attendance.service import AttendanceLog
from ..common.datetime_utils import now_local
from ..core.constants import NO_CHANGE_STATUS
from ..core.enums import ImportFailure
from ..core.exceptions import RecordImportError, ValidationError
from ..grades.service import GradeAggregator
from ..instances.model import AttendanceInstance
from ..instances.service import InstanceService
from ..sessions.service import SessionService
from ..statuses.model import Status
from ..statuses.service import StatusCatalog
from .service import RecordImporter

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    success_count: int = 0
    errors: list[tuple[str, ImportFailure]] = field(default_factory=list)
    userdata: str = ""

    def log_error(self, error: RecordImportError) -> None:
        self.errors.append((error.raw_line, error.reason))

    def to_payload(self) -> dict:
        return {
            "success_count": self.success_count,
            "errors": [{"line": line, "reason": reason.value} for line, reason in self.errors],
            "userdata": self.userdata,
        }


class ImportBatchService:
    """Use case: import a pasted block of scanner/CSV lines.

    Per-line failures never abort sibling lines. Failed lines stay in the
    instance's import buffer so they can be corrected and resubmitted.
    """

    def __init__(
        self,
        importer: RecordImporter,
        catalog: StatusCatalog,
        sessions: SessionService,
        log: AttendanceLog,
        grades: GradeAggregator,
        instances: InstanceService,
    ):
        self._importer = importer
        self._catalog = catalog
        self._sessions = sessions
        self._log = log
        self._grades = grades
        self._instances = instances

    def _status_from_token(self, instance: AttendanceInstance, token: str) -> Status:
        status = self._catalog.resolve(instance.instance_id, token)
        if status is None:
            raise ValidationError(f"Unknown status: {token}")
        return status

    def default_import_time(self, instance: AttendanceInstance, *, now: datetime | None = None) -> Optional[datetime]:
        """Start of the most recent session, the usual time for lines without a date."""

        return self._sessions.find_most_recent_start(instance.instance_id, before_or_at=now)

    def run(
        self,
        instance: AttendanceInstance,
        userdata: str,
        *,
        default_status: str,
        omitted_status: str = NO_CHANGE_STATUS,
        default_time: datetime,
        acting_user_id: int,
    ) -> ImportResult:
        included = self._status_from_token(instance, default_status)
        omitted: Optional[Status] = None
        if (omitted_status or NO_CHANGE_STATUS).strip() != NO_CHANGE_STATUS:
            omitted = self._status_from_token(instance, omitted_status)

        result = ImportResult()
        touched_sessions: dict[int, None] = {}
        touched_students: set[int] = set()

        for line in (userdata or "").splitlines():
            if not line.strip():
                # Keep blank lines only between retained ones, to preserve the layout a little.
                if result.userdata:
                    result.userdata += "\n"
                continue

            try:
                mark = self._importer.import_mark(
                    instance,
                    line,
                    default_time=default_time,
                    default_status=included,
                    acting_user_id=acting_user_id,
                )
            except RecordImportError as e:
                result.log_error(e)
                result.userdata += line + "\n"
                continue

            touched_sessions[mark.session_id] = None
            touched_students.add(mark.student_id)
            result.success_count += 1

        now = now_local()
        for session_id in touched_sessions:
            if omitted is not None:
                touched_students.update(
                    self._log.fill_absentees(instance, session_id, omitted, acting_user_id=acting_user_id)
                )
            self._sessions.mark_session_updated(session_id, taken_by=acting_user_id, at=now)

        self._instances.set_persistent_import_text(instance, result.userdata)

        if touched_students:
            self._grades.forget(instance, touched_students)
            self._grades.update_grades(instance, sorted(touched_students))

        logger.info(
            "Import into instance %s by %s: %d ok, %d failed, %d sessions",
            instance.instance_id,
            acting_user_id,
            result.success_count,
            len(result.errors),
            len(touched_sessions),
        )
        return result

