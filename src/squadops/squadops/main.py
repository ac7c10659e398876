from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .common.datetime_utils import utc_now
from .common.http import error_response
from .common.log_config import DEFAULT_LOG_FORMAT, configure_logging
from .core.exceptions import DomainError
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .compliance.controller import register as register_compliance
from .leaves.controller import register as register_leaves

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(err: DomainError):
        if err.kind in {"forbidden", "conflict"}:
            logger.warning("%s: %s", err.code, err.message)
        return error_response(err)

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        if isinstance(err, HTTPException):
            return err
        logger.exception("Unhandled error")
        return jsonify({"success": False, "error": "server_error", "code": "server_error", "message": "Internal server error", "details": {}}), 500


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(
        getattr(settings, "LOG_LEVEL", "INFO"),
        getattr(settings, "LOG_FORMAT", DEFAULT_LOG_FORMAT),
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).target)

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            default_timezone=getattr(settings, "DEFAULT_TIMEZONE", "UTC"),
            hours_policy=getattr(settings, "HOURS_POLICY", "truncate"),
            penalty_per_severity=float(getattr(settings, "COMPLIANCE_PENALTY_PER_SEVERITY", 2.0)),
            list_limit=int(getattr(settings, "LIST_LIMIT", 200)),
        )

    _register_error_handlers(app)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok", "timestamp": utc_now().isoformat()})

    register_attendance(app, container)
    register_leaves(app, container)
    register_compliance(app, container)

    return app
