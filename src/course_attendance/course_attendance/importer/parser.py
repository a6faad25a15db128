from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from ..common.datetime_utils import parse_scanner_datetime
from ..core.constants import SCANNER_MARKER
from ..core.enums import ImportFailure
from ..core.exceptions import RecordImportError
from ..statuses.model import Status

StatusResolver = Callable[[str], Optional[Status]]


@dataclass(frozen=True)
class BareRecord:
    """A line holding nothing but the student's ID number."""

    identifier: str


@dataclass(frozen=True)
class ScannerRecord:
    """``<id>,Codabar,[dd/mm/YYYY HH:MM:SS],[status]`` as written by the barcode scanners."""

    identifier: str
    scanned_at: Optional[datetime] = None
    status: Optional[Status] = None


ParsedLine = Union[BareRecord, ScannerRecord]


def split_fields(line: str) -> list[str]:
    rows = list(csv.reader([line]))
    if not rows:
        return []
    return [field.strip() for field in rows[0]]


def parse_line(line: str, resolve_status: StatusResolver) -> ParsedLine:
    """Turn one import line into a BareRecord or ScannerRecord.

    ``resolve_status`` maps a status token to a Status (or None). Raises
    RecordImportError with INVALID_FORMAT, INVALID_DATE or INVALID_STATUS.
    """

    try:
        fields = split_fields(line)
    except csv.Error:
        # Stray NUL bytes are rejected by the csv module on some interpreters.
        raise RecordImportError(ImportFailure.INVALID_FORMAT, line)

    if len(fields) == 1 and fields[0]:
        return BareRecord(identifier=fields[0])

    if len(fields) >= 2 and fields[1] == SCANNER_MARKER:
        # An empty identifier is left to the user lookup to reject.
        scanned_at: Optional[datetime] = None
        date_text = fields[2] if len(fields) > 2 else ""
        if date_text:
            try:
                scanned_at = parse_scanner_datetime(date_text)
            except ValueError:
                raise RecordImportError(ImportFailure.INVALID_DATE, line)

        status: Optional[Status] = None
        status_text = fields[3] if len(fields) > 3 else ""
        if status_text:
            status = resolve_status(status_text)
            if status is None:
                raise RecordImportError(ImportFailure.INVALID_STATUS, line)

        return ScannerRecord(identifier=fields[0], scanned_at=scanned_at, status=status)

    raise RecordImportError(ImportFailure.INVALID_FORMAT, line)
