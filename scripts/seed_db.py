from __future__ import annotations

import logging

from _paths import REPO_ROOT

from config import load_settings

from delivery_system.core.logging_config import setup_logging
from delivery_system.database.bootstrap import apply_seed_sql, ensure_demo_users

logger = logging.getLogger("scripts.seed_db")


def main() -> None:
    settings = load_settings()
    setup_logging(level=getattr(settings, "LOG_LEVEL", None) or "INFO")
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_users(db_config)
    logger.info(
        "Seeded database -> %s@%s:%s/%s",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )


if __name__ == "__main__":
    main()
