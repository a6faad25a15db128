from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ..attendance.service import AttendanceLog
from ..common.datetime_utils import format_userdate
from ..core.constants import REMARK_BARCODE_SCAN, REMARK_BARCODE_SCAN_DATE
from ..core.enums import ImportFailure
from ..core.exceptions import RecordImportError
from ..instances.model import AttendanceInstance
from ..sessions.service import SessionService
from ..statuses.model import Status
from ..statuses.service import StatusCatalog
from ..users.service import IdentityDirectory
from .parser import BareRecord, parse_line

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportedMark:
    session_id: int
    student_id: int


class RecordImporter:
    """Use case: commit one import line as an attendance mark."""

    def __init__(
        self,
        catalog: StatusCatalog,
        sessions: SessionService,
        directory: IdentityDirectory,
        log: AttendanceLog,
    ):
        self._catalog = catalog
        self._sessions = sessions
        self._directory = directory
        self._log = log

    def import_line(
        self,
        instance: AttendanceInstance,
        line: str,
        *,
        default_time: datetime,
        default_status: Status,
        acting_user_id: int,
        update_time: bool = False,
    ) -> int:
        """Import ``line`` and return the id of the session it was recorded in.

        Raises RecordImportError carrying the failure reason and the raw line.
        """

        return self.import_mark(
            instance,
            line,
            default_time=default_time,
            default_status=default_status,
            acting_user_id=acting_user_id,
            update_time=update_time,
        ).session_id

    def import_mark(
        self,
        instance: AttendanceInstance,
        line: str,
        *,
        default_time: datetime,
        default_status: Status,
        acting_user_id: int,
        update_time: bool = False,
    ) -> ImportedMark:
        parsed = parse_line(line, lambda token: self._catalog.resolve(instance.instance_id, token))

        if isinstance(parsed, BareRecord):
            at = default_time
            status = default_status
            remark = REMARK_BARCODE_SCAN
        else:
            at = parsed.scanned_at or default_time
            status = parsed.status or default_status
            if parsed.scanned_at is not None:
                remark = REMARK_BARCODE_SCAN_DATE.format(date=format_userdate(parsed.scanned_at))
            else:
                remark = REMARK_BARCODE_SCAN

        student = self._directory.resolve_by_idnumber(parsed.identifier)
        if student is None:
            raise RecordImportError(ImportFailure.INVALID_USER, line)

        session = self._sessions.find_covering(instance.instance_id, at)
        if session is None:
            raise RecordImportError(ImportFailure.INVALID_SESSION, line)

        self._log.upsert(
            instance_id=instance.instance_id,
            student_id=student.user_id,
            session_id=session.session_id,
            status_id=status.status_id,
            remarks=remark,
            acting_user_id=acting_user_id,
        )

        if update_time:
            self._sessions.mark_session_updated(session.session_id, taken_by=acting_user_id)

        logger.debug("Imported %s -> session %s as %s", parsed.identifier, session.session_id, status.acronym)
        return ImportedMark(session_id=session.session_id, student_id=student.user_id)
