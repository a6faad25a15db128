from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Course roles used by the default access policy."""

    MANAGER = "manager"
    TEACHER = "teacher"
    STUDENT = "student"


class ImportFailure(str, Enum):
    """Reason an import line could not be committed."""

    INVALID_FORMAT = "invalid_format"
    INVALID_USER = "invalid_user"
    INVALID_DATE = "invalid_date"
    INVALID_STATUS = "invalid_status"
    INVALID_SESSION = "invalid_session"


class LookupMode(str, Enum):
    """How a live check-off request identifies the student."""

    ID_NUMBER = "idnumber"
    USER_ID = "userid"


class LiveResultStatus(str, Enum):
    SUCCESS = "success"
    IMPORT_ERROR = "importerror"
