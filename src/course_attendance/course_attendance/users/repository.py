from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Student


class UserRepository(Protocol):
    """Repository interface for the identity directory.

    Note: services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_idnumber(self, idnumber: str) -> Optional[Student]:
        raise NotImplementedError

    def get_by_profile_field(self, *, shortname: str, value: str) -> Optional[Student]:
        raise NotImplementedError

    def list_enrolled(self, *, course_id: int, group_id: int = 0) -> Sequence[Student]:
        """Students enrolled in the course; group 0 means every group."""

        raise NotImplementedError
