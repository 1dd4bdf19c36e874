from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Persistence for back-office accounts."""

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def search(self, *, search: Optional[str], role: Optional[Role], limit: int, offset: int) -> Sequence[User]:
        raise NotImplementedError

    def count(self, *, search: Optional[str], role: Optional[Role]) -> int:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        permissions: Optional[Sequence[str]],
    ) -> int:
        raise NotImplementedError

    def update(
        self,
        user_id: int,
        *,
        name: str,
        email: str,
        role: Role,
        permissions: Optional[Sequence[str]],
        password_hash: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError
