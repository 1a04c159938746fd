"""
Centralized logging configuration for the grooming booking backend.

- JSON lines for log files (and for the console in production)
- Colored console output for development, with the ``context`` dict inline
- Optional slow-query logging for SQLAlchemy
- Flask request/response logging tagged with a request id
- Size-based rotation

Modules log through ``logging.getLogger(__name__)`` and attach structured
data with ``extra={"context": {...}}``:

    logger.info("Appointment booked", extra={"context": {"appointment_id": 12}})
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
from sqlalchemy import event
from sqlalchemy.engine import Engine

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _request_id() -> Optional[str]:
    if has_request_context():
        return g.get("request_id")
    return None


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, context."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = _request_id()
        if request_id:
            log_data["request_id"] = request_id
        if hasattr(record, "context"):
            log_data["context"] = getattr(record, "context", {})
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored level names with the structured context appended as key=value."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Copy: file handlers format the same record with the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname:8}{self.RESET}"
        line = super().format(record)

        context = getattr(record, "context", None)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            line = f"{line} | {pairs}"
        return line


def _add_rotating_handler(
    root_logger: logging.Logger,
    path: Path,
    level: int,
    formatter: logging.Formatter,
) -> None:
    try:
        handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
    except OSError as e:
        root_logger.warning(
            f"Failed to create log file {path.name}: {e}. Logging to console only.",
            extra={"context": {"component": "logging_setup"}},
        )
        return
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def setup_logging(
    app: Optional[Flask] = None,
    log_level: Union[int, str] = "INFO",
    enable_sql_echo: bool = False,
    log_to_file: bool = True,
    use_json_format: bool = False,
    log_dir: Optional[Path] = None,
    slow_query_ms: float = 0.0,
) -> None:
    """
    Configure logging for the Flask application.

    Args:
        app: Flask application instance (required for request/response hooks)
        log_level: Logging level (int like logging.INFO or string "INFO")
        enable_sql_echo: Log SQLAlchemy statements with their duration
        log_to_file: Write logs to rotating files
        use_json_format: Use JSON format on the console too
        log_dir: Directory for log files (defaults to <backend>/logs)
        slow_query_ms: With SQL echo on, only log statements at least this slow
    """
    if isinstance(log_level, int):
        level = log_level
    else:
        level = getattr(logging, str(log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    if use_json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(
            ConsoleFormatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root_logger.addHandler(console_handler)

    if log_to_file:
        log_dir = log_dir or Path(__file__).parent.parent.parent / "logs"
        try:
            log_dir.mkdir(exist_ok=True)
        except OSError as e:
            root_logger.warning(
                f"Failed to create logs directory: {e}. Logging to console only.",
                extra={"context": {"component": "logging_setup"}},
            )
            log_to_file = False

    if log_to_file:
        _add_rotating_handler(root_logger, log_dir / "groombook.log", level, JSONFormatter())
        _add_rotating_handler(
            root_logger, log_dir / "groombook_errors.log", logging.ERROR, JSONFormatter()
        )

    if enable_sql_echo:
        _register_query_timing(slow_query_ms)

    if app is not None:
        _register_request_logging(app)

    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    app_logger = logging.getLogger("groombook")
    app_logger.setLevel(level)
    app_logger.info(
        "Logging configured",
        extra={
            "context": {
                "level": logging.getLevelName(level),
                "sql_echo": enable_sql_echo,
                "log_to_file": log_to_file,
                "json_format": use_json_format,
            }
        },
    )


_slow_query_threshold_ms = 0.0


def _register_query_timing(slow_query_ms: float) -> None:
    global _slow_query_threshold_ms
    _slow_query_threshold_ms = slow_query_ms

    if event.contains(Engine, "before_cursor_execute", _before_cursor_execute):
        return
    event.listen(Engine, "before_cursor_execute", _before_cursor_execute)
    event.listen(Engine, "after_cursor_execute", _after_cursor_execute)


def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    conn.info.setdefault("query_start_time", []).append(time.perf_counter())


def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    starts = conn.info.get("query_start_time")
    if not starts:
        return
    duration_ms = (time.perf_counter() - starts.pop(-1)) * 1000
    if duration_ms < _slow_query_threshold_ms:
        return
    logging.getLogger("groombook.sql").info(
        f"Query executed in {duration_ms:.2f}ms",
        extra={
            "context": {
                "sql_query": statement[:500],
                "sql_duration_ms": round(duration_ms, 2),
            }
        },
    )


def _register_request_logging(app: Flask) -> None:
    req_logger = logging.getLogger("groombook.http")

    @app.before_request
    def log_request():
        g.request_start_time = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        req_logger.debug(
            f"{request.method} {request.path}",
            extra={
                "context": {
                    "method": request.method,
                    "route": request.url_rule.rule if request.url_rule else request.path,
                    "remote_addr": request.remote_addr,
                }
            },
        )

    @app.after_request
    def log_response(response):
        if "request_start_time" not in g:
            return response
        duration_ms = (time.perf_counter() - g.request_start_time) * 1000
        current = g.get("current_user")
        req_logger.info(
            f"{request.method} {request.path} {response.status_code} in {duration_ms:.2f}ms",
            extra={
                "context": {
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                    "user_id": getattr(current, "id", None),
                    "role": getattr(getattr(current, "role", None), "value", None),
                }
            },
        )
        response.headers["X-Request-ID"] = g.request_id
        return response


def log_performance(func_name: str, duration_ms: float, **kwargs) -> None:
    """
    Log how long an operation took.

    Args:
        func_name: Name of the function or operation
        duration_ms: Execution duration in milliseconds
        **kwargs: Additional context (business_id, slot_count, etc.)
    """
    context = {"function": func_name, "duration_ms": round(duration_ms, 2)}
    context.update(kwargs)
    logging.getLogger("groombook.performance").info(
        f"{func_name} completed in {duration_ms:.2f}ms",
        extra={"context": context},
    )
