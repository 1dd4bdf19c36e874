from __future__ import annotations

import logging
import logging.config
from typing import Any, Dict


def build_logging_config(*, debug: bool = False, level: str | None = None) -> Dict[str, Any]:
    level = (level or ("DEBUG" if debug else "INFO")).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(funcName)s(): %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "level": level,
                "class": "logging.StreamHandler",
                "formatter": "detailed" if debug else "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {"handlers": ["console"], "level": level},
            "delivery_system": {"handlers": ["console"], "level": level, "propagate": False},
            "mysql.connector": {"handlers": ["console"], "level": "WARNING", "propagate": False},
            "werkzeug": {"handlers": ["console"], "level": "INFO", "propagate": False},
        },
    }


def setup_logging(*, debug: bool = False, level: str | None = None) -> None:
    """Configure process-wide logging (console only)."""
    logging.config.dictConfig(build_logging_config(debug=debug, level=level))
