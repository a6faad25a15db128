from __future__ import annotations

import logging
from typing import Optional, Sequence

from .model import Student
from .repository import UserRepository

logger = logging.getLogger(__name__)


class IdentityDirectory:
    """Use case: turn an institution ID number into a user.

    The primary ``idnumber`` column is checked first (when enabled), then each
    configured profile field in declared order. The first field that matches
    wins; matches in later fields are not looked at, so an ID number present in
    two fields for two different users resolves to the earlier field's user.
    """

    def __init__(self, users: UserRepository, *, use_idnumbers: bool = True, idnumber_fields: Sequence[str] = ()):
        self._users = users
        self._use_idnumbers = bool(use_idnumbers)
        self._idnumber_fields = [f.strip() for f in idnumber_fields if f and f.strip()]

    def resolve_by_idnumber(self, idnumber: str) -> Optional[Student]:
        idnumber = (idnumber or "").strip()
        if not idnumber:
            return None

        if self._use_idnumbers:
            user = self._users.get_by_idnumber(idnumber)
            if user:
                return user

        for field in self._idnumber_fields:
            user = self._users.get_by_profile_field(shortname=field, value=idnumber)
            if user:
                logger.debug("ID number %s matched profile field %s", idnumber, field)
                return user

        return None

    def get_user(self, user_id: int) -> Optional[Student]:
        return self._users.get_by_id(int(user_id))

    def list_enrolled(self, *, course_id: int, group_id: int = 0) -> Sequence[Student]:
        return self._users.list_enrolled(course_id=int(course_id), group_id=int(group_id or 0))
