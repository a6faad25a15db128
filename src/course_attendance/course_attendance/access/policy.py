from __future__ import annotations

from typing import Iterable, Optional, Protocol

from ..core.enums import Role


class AccessPolicy(Protocol):
    """Yes/no answer for who may write attendance in an instance."""

    def can_take(self, *, user_id: int, role: Optional[str], instance_id: int) -> bool:
        raise NotImplementedError

    def can_import(self, *, user_id: int, role: Optional[str], instance_id: int) -> bool:
        raise NotImplementedError


class RoleAccessPolicy(AccessPolicy):
    """Grants taking and importing to course managers and teachers."""

    def __init__(self, *, allowed_roles: Iterable[Role] = (Role.MANAGER, Role.TEACHER)):
        self._allowed = {r.value for r in allowed_roles}

    def can_take(self, *, user_id: int, role: Optional[str], instance_id: int) -> bool:
        return bool(user_id) and role in self._allowed

    def can_import(self, *, user_id: int, role: Optional[str], instance_id: int) -> bool:
        return self.can_take(user_id=user_id, role=role, instance_id=instance_id)
