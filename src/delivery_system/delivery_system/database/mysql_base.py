from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Sequence

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor); commit on success, roll back and re-raise on error.

    Inside ``conn_factory.transaction()`` the cursor comes from the shared
    connection and commit/rollback is left to the transaction.
    """
    shared = conn_factory.active_connection()
    if shared is not None:
        cur = shared.cursor(dictionary=dictionary)
        try:
            yield shared, cur
        finally:
            cur.close()
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        logger.exception("Database operation failed, rolling back")
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def placeholders(values: Sequence[Any]) -> str:
    """'%s,%s,...' for an IN (...) clause."""
    return ",".join(["%s"] * len(values))


def to_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()


def load_json(value: Any) -> Any:
    """JSON columns come back as str/bytes from some connector builds."""
    if value is None or isinstance(value, (dict, list)):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value)


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME columns arrive as time, timedelta or '15:00:00' depending on the connector build."""
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
        return (datetime.min + timedelta(seconds=seconds)).time()
    if isinstance(value, str):
        try:
            return time.fromisoformat(value.strip())
        except ValueError:
            raise ValueError(f"Invalid time string: {value!r}") from None
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
