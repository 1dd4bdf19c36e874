from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import load_settings

from .container import Container, build_container
from .core.logging_config import setup_logging
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .database.connection import DBConfig
from .masterdata.controller import register as register_masterdata
from .milestones.controller import register as register_milestones
from .notifications.controller import register as register_notifications
from .orders.controller import register as register_orders
from .planning.controller import register as register_planning
from .sales.controller import register as register_sales
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _prepare_database(settings, db_config: dict) -> None:
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_users(db_config)
        logger.info("Demo seed ready")


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the API app; pass a container to run against in-memory repositories."""
    app = Flask(__name__)

    settings = load_settings()
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    setup_logging(debug=app.config["DEBUG"], level=getattr(settings, "LOG_LEVEL", None))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info("settings=%s db=%s", settings.__name__, DBConfig.from_dict(db_config).describe())
        _prepare_database(settings, db_config)
        container = build_container(
            db_config=db_config,
            surcharges=getattr(settings, "SURCHARGES", None),
            kpi_threshold=getattr(settings, "KPI_THRESHOLD_PERCENT"),
            l300_max_value=getattr(settings, "L300_MAX_VALUE"),
            max_orders_per_batch=int(getattr(settings, "MAX_ORDERS_PER_BATCH")),
        )

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        logger.exception("Unhandled error")
        message = str(e) if app.config["DEBUG"] else "Internal server error"
        return jsonify({"error": message}), 500

    register_masterdata(app, container)
    register_orders(app, container)
    register_milestones(app, container)
    register_planning(app, container)
    register_sales(app, container)
    register_notifications(app, container)
    register_users(app, container)

    return app
