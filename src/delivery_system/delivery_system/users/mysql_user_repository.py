from __future__ import annotations

import json
from typing import Any, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json
from .model import User
from .repository import UserRepository

_USER_COLUMNS = "id, name, email, password_hash, role, permissions, created_at"


def _user_from_row(row: dict) -> User:
    stored = load_json(row.get("permissions"))
    return User(
        user_id=int(row["id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        permissions=tuple(stored) if stored is not None else None,
        created_at=row.get("created_at"),
    )


def _dump_permissions(permissions: Optional[Sequence[str]]) -> Optional[str]:
    return json.dumps(list(permissions)) if permissions is not None else None


def _where(search: Optional[str], role: Optional[Role]) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    if search:
        clauses.append("(name LIKE %s OR email LIKE %s)")
        like = f"%{search}%"
        params.extend([like, like])
    if role:
        clauses.append("role=%s")
        params.append(role.value)
    return (" WHERE " + " AND ".join(clauses)) if clauses else "", params


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id=%s", (user_id,))
            row = fetchone(cur)
            return _user_from_row(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _user_from_row(row) if row else None

    def search(self, *, search: Optional[str], role: Optional[Role], limit: int, offset: int) -> Sequence[User]:
        where, params = _where(search, role)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_USER_COLUMNS} FROM users{where} ORDER BY name ASC, id ASC LIMIT %s OFFSET %s",
                (*params, limit, offset),
            )
            return [_user_from_row(r) for r in fetchall(cur)]

    def count(self, *, search: Optional[str], role: Optional[Role]) -> int:
        where, params = _where(search, role)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM users{where}", tuple(params))
            row = fetchone(cur)
            return int(row["total"]) if row else 0

    def create(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        permissions: Optional[Sequence[str]],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(name, email, password_hash, role, permissions)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (name, email, password_hash, role.value, _dump_permissions(permissions)),
            )
            return int(cur.lastrowid)

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
        sets = "name=%s, email=%s, role=%s, permissions=%s"
        params: list[Any] = [name, email, role.value, _dump_permissions(permissions)]
        if password_hash:
            sets += ", password_hash=%s"
            params.append(password_hash)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {sets} WHERE id=%s", (*params, user_id))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE id=%s", (user_id,))
            return cur.rowcount > 0
