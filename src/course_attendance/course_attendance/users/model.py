from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Student:
    """Domain entity: a user of the identity directory.

    Note: Plain data object (no DB access code).
    """

    user_id: int
    username: str
    firstname: str
    lastname: str
    idnumber: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()
