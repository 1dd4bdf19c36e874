from __future__ import annotations

import logging

from _paths import REPO_ROOT

from config import load_settings

from delivery_system.core.logging_config import setup_logging
from delivery_system.database.bootstrap import apply_schema, list_tables

logger = logging.getLogger("scripts.init_db")


def main() -> None:
    settings = load_settings()
    setup_logging(level=getattr(settings, "LOG_LEVEL", None) or "INFO")
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = list_tables(db_config)
    logger.info(
        "Applied schema.sql -> %s@%s:%s/%s (tables=%s)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        len(tables),
    )


if __name__ == "__main__":
    main()
