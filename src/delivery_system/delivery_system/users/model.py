from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role
from . import permissions as perms


@dataclass(frozen=True)
class User:
    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    permissions: Optional[tuple[str, ...]] = None
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def has_permission(self, permission: str) -> bool:
        return perms.has_permission(self.role, self.permissions, permission)

    def can_access_route(self, path: str) -> bool:
        return perms.can_access_route(self.role, self.permissions, path)

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "permissions": list(self.permissions) if self.permissions is not None else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class UserInput:
    """Validated admin form input; password is None when left unchanged."""

    name: str
    email: str
    role: Role
    password: Optional[str]
    permissions: Optional[tuple[str, ...]]
