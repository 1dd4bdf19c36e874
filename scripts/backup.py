"""Dump the database into backups/ with `mysqldump`.

Requires the MySQL client tools on PATH.
"""

from __future__ import annotations

import argparse
import logging
import os
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

from _paths import REPO_ROOT

from config import load_settings

from delivery_system.core.logging_config import setup_logging

logger = logging.getLogger("scripts.backup")


def backup_command(db: dict) -> list[str]:
    return [
        "mysqldump",
        f"-h{db['host']}",
        f"-P{db.get('port', 3306)}",
        f"-u{db['user']}",
        "--single-transaction",
        "--routines",
        db["database"],
    ]


def backup_env(db: dict, base: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Environment for mysqldump; the password travels in MYSQL_PWD so it never sits on the command line."""
    env = dict(os.environ if base is None else base)
    if db.get("password"):
        env["MYSQL_PWD"] = str(db["password"])
    return env


def backup_path(out_dir: Path, database: str, now: datetime) -> Path:
    return out_dir / f"{database}_{now.strftime('%Y%m%d_%H%M%S')}.sql"


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a SQL dump of the delivery database.")
    parser.add_argument("--out-dir", type=Path, default=REPO_ROOT / "backups")
    args = parser.parse_args()

    settings = load_settings()
    setup_logging(level=getattr(settings, "LOG_LEVEL", None) or "INFO")
    db = settings.DB_CONFIG

    args.out_dir.mkdir(parents=True, exist_ok=True)
    out_file = backup_path(args.out_dir, db["database"], datetime.now())

    try:
        with out_file.open("wb") as f:
            subprocess.run(
                backup_command(db), stdout=f, stderr=subprocess.PIPE, env=backup_env(db), check=True
            )
    except FileNotFoundError:
        out_file.unlink(missing_ok=True)
        raise SystemExit("`mysqldump` not found. Install the MySQL client tools.")
    except subprocess.CalledProcessError as e:
        out_file.unlink(missing_ok=True)
        logger.error("mysqldump failed: %s", e.stderr.decode("utf-8", "replace").strip())
        raise SystemExit(e.returncode)
    logger.info("Backup created: %s", out_file)


if __name__ == "__main__":
    main()
