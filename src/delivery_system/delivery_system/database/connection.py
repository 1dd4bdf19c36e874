from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import mysql.connector

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "delivery_db"


@dataclass(frozen=True)
class DBConfig:
    """Where the delivery database lives; built from settings.DB_CONFIG."""

    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = DEFAULT_DATABASE

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config.get("host") or "localhost"),
            port=int(db_config.get("port") or 3306),
            user=str(db_config.get("user") or "root"),
            password=str(db_config.get("password") or ""),
            database=str(db_config.get("database") or DEFAULT_DATABASE),
        )

    def connect_kwargs(self, *, with_database: bool = True) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "use_pure": True,
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs

    def describe(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Process-wide connection factory.

    Repository calls open a short-lived connection each, unless a
    ``transaction()`` is active in the current context: then they all share
    its connection and nothing is committed until the block exits cleanly.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._active: ContextVar[Optional[Any]] = ContextVar(f"delivery_tx_{id(self)}", default=None)

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            logger.info("Using database %s", config.describe())
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self, *, with_database: bool = True):
        return mysql.connector.connect(**self._config.connect_kwargs(with_database=with_database))

    def active_connection(self):
        """Connection of the enclosing transaction(), or None."""
        return self._active.get()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        # nested blocks join the outer transaction
        if self._active.get() is not None:
            yield
            return
        conn = self.connect()
        token = self._active.set(conn)
        try:
            yield
            conn.commit()
        except Exception:
            logger.warning("Transaction rolled back")
            conn.rollback()
            raise
        finally:
            self._active.reset(token)
            conn.close()
