"""Schema and seed helpers used by the app factory and scripts/."""

from __future__ import annotations

import json
import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)

# (name, email, password, role, permissions)
DEMO_USERS = (
    ("Administrator", "admin@example.com", "admin12345", "admin", None),
    (
        "Dispatch Staff",
        "staff@example.com",
        "staff12345",
        "staff",
        ["dashboard", "delivery-orders", "route-planner", "allocation-planner"],
    ),
)


def _target(db_config: dict) -> DBConfig:
    return DBConfig.from_dict(db_config)


@contextmanager
def _session(db_config: dict, *, with_database: bool = True, dictionary: bool = False):
    """Raw connection for DDL and seeding, committed when the block exits cleanly."""
    conn = mysql.connector.connect(**_target(db_config).connect_kwargs(with_database=with_database))
    try:
        yield conn.cursor(dictionary=dictionary)
        conn.commit()
    finally:
        conn.close()


def _strip_create_db_and_use(sql: str) -> str:
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a SQL script on ';' outside of quoted strings."""
    pending: list[str] = []
    quote = ""
    escaped = False

    for ch in sql:
        pending.append(ch)
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif quote:
            if ch == quote:
                quote = ""
        elif ch in {"'", '"'}:
            quote = ch
        elif ch == ";":
            statement = "".join(pending[:-1]).strip()
            pending = []
            if statement:
                yield statement

    rest = "".join(pending).strip()
    if rest:
        yield rest


def _run_script(db_config: dict, path: Path) -> int:
    statements = list(iter_sql_statements(_strip_comments(_strip_create_db_and_use(path.read_text(encoding="utf-8")))))
    with _session(db_config) as cur:
        for statement in statements:
            cur.execute(statement)
    logger.info("Applied %s (%s statements)", path.name, len(statements))
    return len(statements)


def ensure_database_exists(db_config: dict) -> None:
    name = _target(db_config).database
    with _session(db_config, with_database=False) as cur:
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _run_script(db_config, Path(schema_path))


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _run_script(db_config, Path(seed_path))


def ensure_demo_users(db_config: dict, users: Iterable[tuple] = DEMO_USERS) -> None:
    """Create or reset the demo accounts (passwords are re-hashed every run)."""
    with _session(db_config, dictionary=True) as cur:
        for name, email, password, role, permissions in users:
            stored = json.dumps(permissions) if permissions is not None else None
            hashed = generate_password_hash(password)
            cur.execute("SELECT id FROM users WHERE email=%s", (email,))
            if cur.fetchone():
                cur.execute(
                    "UPDATE users SET name=%s, password_hash=%s, role=%s, permissions=%s WHERE email=%s",
                    (name, hashed, role, stored, email),
                )
            else:
                cur.execute(
                    "INSERT INTO users (name, email, password_hash, role, permissions) VALUES (%s, %s, %s, %s, %s)",
                    (name, email, hashed, role, stored),
                )
    logger.info("Demo users ready")


def list_tables(db_config: dict) -> list[str]:
    with _session(db_config) as cur:
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
