from __future__ import annotations

import logging
import re
from typing import Any, Optional

from werkzeug.security import generate_password_hash

from ..common.validators import require_max_length, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import User, UserInput
from .permissions import AVAILABLE_PERMISSIONS, clean_permissions
from .repository import UserRepository

logger = logging.getLogger(__name__)

USERS_PER_PAGE = 10
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def parse_role(value: Any) -> Role:
    try:
        return Role(str(value or "").strip())
    except ValueError:
        raise ValidationError("role must be one of: admin, staff")


def parse_user_input(data: dict[str, Any], *, password_required: bool) -> UserInput:
    name = require_max_length(require_non_empty(data.get("name") or "", "name"), "name", 255)
    email = require_max_length(require_non_empty(data.get("email") or "", "email"), "email", 255).lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("email must be a valid email address")
    role = parse_role(data.get("role"))

    password = data.get("password") or None
    if password is None and password_required:
        raise ValidationError("password is required")
    if password is not None:
        require_min_length(str(password), "password", MIN_PASSWORD_LENGTH)
        confirmation = data.get("password_confirmation")
        if confirmation is not None and confirmation != password:
            raise ValidationError("password confirmation does not match")

    raw = data.get("permissions")
    if raw is not None and not isinstance(raw, list):
        raise ValidationError("permissions must be a list")
    # admins carry every permission implicitly
    permissions = None if role == Role.ADMIN else tuple(clean_permissions(raw))
    return UserInput(name=name, email=email, role=role, password=password, permissions=permissions)


class UserService:
    """Use case: manage back-office accounts (admin)."""

    def __init__(self, users: UserRepository, *, page_size: int = USERS_PER_PAGE):
        self._users = users
        self._page_size = page_size

    @staticmethod
    def available_permissions() -> dict[str, str]:
        return dict(AVAILABLE_PERMISSIONS)

    def get(self, *, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def list(self, *, search: Optional[str] = None, role: Optional[Role] = None, page: int = 1) -> dict:
        page = max(1, int(page))
        search = (search or "").strip() or None
        total = self._users.count(search=search, role=role)
        users = self._users.search(
            search=search, role=role, limit=self._page_size, offset=(page - 1) * self._page_size
        )
        return {
            "users": [u.to_dict() for u in users],
            "total": total,
            "page": page,
            "per_page": self._page_size,
            "last_page": max(1, -(-total // self._page_size)),
        }

    def create(self, *, data: UserInput) -> User:
        if not data.password:
            raise ValidationError("password is required")
        if self._users.get_by_email(data.email):
            raise ValidationError("The email has already been taken.")
        user_id = self._users.create(
            name=data.name,
            email=data.email,
            password_hash=generate_password_hash(data.password),
            role=data.role,
            permissions=data.permissions,
        )
        logger.info("Created %s account %s", data.role.value, data.email)
        return self.get(user_id=user_id)

    def update(self, *, user_id: int, data: UserInput) -> User:
        user = self.get(user_id=user_id)
        other = self._users.get_by_email(data.email)
        if other and other.user_id != user.user_id:
            raise ValidationError("The email has already been taken.")
        self._users.update(
            user.user_id,
            name=data.name,
            email=data.email,
            role=data.role,
            permissions=data.permissions,
            password_hash=generate_password_hash(data.password) if data.password else None,
        )
        return self.get(user_id=user.user_id)

    def delete(self, *, user_id: int, current_user_id: Optional[int]) -> None:
        user = self.get(user_id=user_id)
        if current_user_id is not None and user.user_id == int(current_user_id):
            raise AuthorizationError("You cannot delete your own account.")
        if not self._users.delete_by_id(user.user_id):
            raise NotFoundError("User not found")
        logger.info("Deleted account %s", user.email)
