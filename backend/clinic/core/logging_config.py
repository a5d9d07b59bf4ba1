"""
Logging setup for the clinic API.

Every module logs through the standard library with structured context:

    logger = logging.getLogger(__name__)
    logger.info("Stock movement recorded", extra={"context": {"inventory_id": item_id}})

setup_logging() wires the handlers once per app: JSON lines in production,
coloured console output in development, optional rotating files, per-request
ids and optional SQL timings.
"""

import json
import logging
import logging.handlers
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from flask import Flask, g, has_request_context, request
from flask_login import current_user
from sqlalchemy import event
from sqlalchemy.engine import Engine

LOG_DIR = Path(__file__).resolve().parents[2] / "logs"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5
NOISY_LOGGERS = ("werkzeug", "urllib3", "stripe", "sqlalchemy.engine")

_sql_timing_registered = False


class RequestIdFilter(logging.Filter):
    """Stamp records emitted inside a request with that request's id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = g.get("request_id") if has_request_context() else None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line; `context` and `request_id` are carried through."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            entry["request_id"] = request_id
        if hasattr(record, "context"):
            entry["context"] = record.context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Colour a copy so file handlers keep the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname:8}{self.RESET}"
        line = super().format(record)
        context = getattr(record, "context", None)
        if context:
            line += " | " + json.dumps(context, ensure_ascii=False, default=str)
        return line


def setup_logging(
    app: Optional[Flask] = None,
    log_level: Union[int, str] = "INFO",
    enable_sql_echo: bool = False,
    log_to_file: bool = False,
    use_json_format: bool = False,
) -> None:
    """
    Replace the root handlers with the clinic's own.

    Args:
        app: Flask app to attach request/response logging to
        log_level: logging level as int or name
        enable_sql_echo: log each SQL statement with its duration (DEBUG)
        log_to_file: also write JSON logs under backend/logs
        use_json_format: JSON console output instead of coloured text
    """
    if isinstance(log_level, str):
        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    else:
        level = log_level

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.addFilter(RequestIdFilter())
    console.setFormatter(
        JSONFormatter()
        if use_json_format
        else ConsoleFormatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(console)

    if log_to_file:
        _add_file_handlers(root, level)
    if enable_sql_echo:
        _register_sql_timing()
    if app is not None:
        _register_request_hooks(app)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    clinic_logger = logging.getLogger("clinic")
    clinic_logger.setLevel(level)
    clinic_logger.info(
        "Logging configured",
        extra={
            "context": {
                "level": logging.getLevelName(level),
                "json": use_json_format,
                "sql_timing": enable_sql_echo,
                "files": log_to_file,
            }
        },
    )


def _rotating_handler(filename: str, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        LOG_DIR / filename,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JSONFormatter())
    return handler


def _add_file_handlers(root: logging.Logger, level: int) -> None:
    """clinic.log at the configured level, clinic_errors.log for ERROR and up."""
    try:
        LOG_DIR.mkdir(exist_ok=True)
        root.addHandler(_rotating_handler("clinic.log", level))
        root.addHandler(_rotating_handler("clinic_errors.log", logging.ERROR))
    except OSError as e:
        root.warning(
            "Log directory unavailable, console logging only",
            extra={"context": {"error": str(e), "log_dir": str(LOG_DIR)}},
        )


def _register_sql_timing() -> None:
    global _sql_timing_registered
    if _sql_timing_registered:
        return
    sql_logger = logging.getLogger("clinic.sql")

    @event.listens_for(Engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("clinic_query_start", []).append(time.perf_counter())

    @event.listens_for(Engine, "after_cursor_execute")
    def _log_duration(conn, cursor, statement, parameters, context, executemany):
        starts = conn.info.get("clinic_query_start")
        if not starts:
            return
        duration_ms = round((time.perf_counter() - starts.pop()) * 1000, 2)
        sql_logger.debug(
            f"SQL {duration_ms}ms",
            extra={"context": {"statement": statement[:500], "duration_ms": duration_ms}},
        )

    _sql_timing_registered = True


def _register_request_hooks(app: Flask) -> None:
    request_logger = logging.getLogger("clinic.request")

    @app.before_request
    def _start_request():
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        request_logger.info(
            f"{request.method} {request.path}",
            extra={"context": {"remote_addr": request.remote_addr}},
        )

    @app.after_request
    def _finish_request(response):
        started = g.get("request_started")
        if started is None:
            return response
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        actor_id = current_user.get_id() if current_user.is_authenticated else None
        request_logger.info(
            f"{request.method} {request.path} -> {response.status_code}",
            extra={
                "context": {
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                    "actor_id": actor_id,
                }
            },
        )
        response.headers["X-Request-ID"] = g.request_id
        return response


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
