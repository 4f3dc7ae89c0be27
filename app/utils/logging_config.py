"""Structured logging configuration for production monitoring."""

import json
import logging
import os
import tempfile
import time
import traceback
from logging.handlers import TimedRotatingFileHandler
from time import perf_counter
from typing import Optional

from sqlalchemy import event


class MessageContainsFilter(logging.Filter):
    """Allow records that contain the configured substring."""

    def __init__(self, substring: str):
        super().__init__()
        self.substring = substring

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return False
        return self.substring in message


class LevelOnlyFilter(logging.Filter):
    """Accept exactly one level (e.g. WARNING without ERROR/CRITICAL)."""

    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno == self.level


class JsonFormatter(logging.Formatter):
    """JSON formatter for cleaner machine-parsable logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        if hasattr(record, "request_id"):
            payload["request_id"] = getattr(record, "request_id")
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class SafeTimedRotatingFileHandler(TimedRotatingFileHandler):
    """TimedRotatingFileHandler that tolerates Windows file-lock rollover failures.

    When another process holds the file (WinError 32) the rollover is skipped
    for this interval and the base file is reopened.
    """

    def doRollover(self) -> None:  # type: ignore[override]
        try:
            super().doRollover()
        except PermissionError as exc:
            if getattr(exc, "winerror", None) != 32:
                raise
            self.stream = self._open()
            self.rolloverAt = int(time.time()) + self.interval


def _rotating_handler(
    log_dir: str,
    filename: str,
    level: int,
    formatter: logging.Formatter,
    backup_count: int,
    when: str = "midnight",
) -> SafeTimedRotatingFileHandler:
    handler = SafeTimedRotatingFileHandler(
        os.path.join(log_dir, filename),
        when=when,
        interval=1,
        backupCount=backup_count,
        encoding="utf-8",
        delay=True,
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _clear_logger_handlers(logger_name: str) -> logging.Logger:
    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    return logger


def _resolve_log_dir(app) -> str:
    """Resolve a writable log directory, with fallback when the primary is unavailable."""
    log_dir = app.config.get("APP_LOG_DIR") or os.getenv("APP_LOG_DIR")
    if not log_dir:
        root_dir = os.path.abspath(os.path.join(app.root_path, ".."))
        log_dir = os.path.join(root_dir, "logs")

    try:
        os.makedirs(log_dir, exist_ok=True)
        test_path = os.path.join(log_dir, ".write-test")
        with open(test_path, "w", encoding="utf-8") as test_file:
            test_file.write("ok")
        os.remove(test_path)
        return log_dir
    except OSError:
        fallback_dir = os.path.join(tempfile.gettempdir(), "tarefas-logs")
        os.makedirs(fallback_dir, exist_ok=True)
        return fallback_dir


def _register_slow_query_listener(engine, slow_query_logger: logging.Logger, threshold_ms: float) -> None:
    """Attach SQLAlchemy event listeners to emit slow queries to the dedicated logger."""

    @event.listens_for(engine, "before_cursor_execute")
    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = perf_counter()

    @event.listens_for(engine, "after_cursor_execute")
    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        start = getattr(context, "_query_start_time", None)
        if start is None:
            return
        duration_ms = (perf_counter() - start) * 1000
        if duration_ms < threshold_ms:
            return
        slow_query_logger.warning(
            statement.replace("\n", " "),
            extra={
                "duration": duration_ms / 1000,  # formatter expects seconds
                "statement": statement,
            },
        )


def setup_logging(app, engine: Optional[object] = None):
    """Configure structured logging with rotation.

    Files written to the log directory:
    - app.log / app.jsonl: general application logs (daily, 60 days)
    - error.log: ERROR and above (daily, 90 days)
    - warnings.log: WARNING only (daily, 90 days)
    - slow_requests.log: requests flagged as slow (daily, 60 days)
    - slow_queries.log: statements above SLOW_QUERY_THRESHOLD_MS (weekly)
    - tarefa_actions.log / tarefa_actions.jsonl: task changes (daily, 180 days)
    """
    log_dir = _resolve_log_dir(app)

    app.logger.handlers.clear()
    app.logger.setLevel(logging.INFO)

    text_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s (%(funcName)s:%(lineno)d): %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    json_formatter = JsonFormatter()

    app.logger.addHandler(_rotating_handler(log_dir, "app.log", logging.INFO, text_formatter, 60))
    app.logger.addHandler(_rotating_handler(log_dir, "app.jsonl", logging.INFO, json_formatter, 60))
    app.logger.addHandler(_rotating_handler(log_dir, "error.log", logging.ERROR, text_formatter, 90))

    warnings_handler = _rotating_handler(log_dir, "warnings.log", logging.WARNING, text_formatter, 90)
    warnings_handler.addFilter(LevelOnlyFilter(logging.WARNING))
    app.logger.addHandler(warnings_handler)

    slow_handler = _rotating_handler(log_dir, "slow_requests.log", logging.WARNING, text_formatter, 60)
    slow_handler.addFilter(MessageContainsFilter("SLOW REQUEST"))
    app.logger.addHandler(slow_handler)

    if app.debug:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(text_formatter)
        app.logger.addHandler(console_handler)

    # app.logger is the "app" logger, so app.services.* and app.repositories.*
    # records reach these handlers through propagation.

    slow_query_handler = _rotating_handler(
        log_dir,
        "slow_queries.log",
        logging.WARNING,
        logging.Formatter(
            '[%(asctime)s] SLOW QUERY (%(duration).3fs): %(statement)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ),
        12,
        when="W0",
    )
    slow_query_logger = _clear_logger_handlers("sqlalchemy.slow_queries")
    slow_query_logger.setLevel(logging.WARNING)
    slow_query_logger.addHandler(slow_query_handler)
    slow_query_logger.propagate = False
    if engine is not None:
        threshold_ms = float(app.config.get("SLOW_QUERY_THRESHOLD_MS", 1000))
        _register_slow_query_listener(engine, slow_query_logger, threshold_ms)

    actions_logger = _clear_logger_handlers("tarefa_actions")
    actions_logger.setLevel(logging.INFO)
    actions_logger.addHandler(
        _rotating_handler(log_dir, "tarefa_actions.log", logging.INFO, text_formatter, 180)
    )
    actions_logger.addHandler(
        _rotating_handler(log_dir, "tarefa_actions.jsonl", logging.INFO, json_formatter, 180)
    )
    actions_logger.propagate = False

    banner = "=" * 80
    app.logger.info(banner)
    app.logger.info("Application started", extra={"request_id": "startup"})
    app.logger.info(f"Environment: {'Development' if app.debug else 'Production'}")
    app.logger.info(f"Logging configured - logs directory: {log_dir}")
    app.logger.info(banner)

    return app.logger


def log_request_info(request, response, duration_ms, request_id=None, slow_threshold_ms=2000):
    """Log request information for monitoring.

    Args:
        request: Flask request object
        response: Flask response object
        duration_ms: Request duration in milliseconds
        request_id: Optional correlation identifier
        slow_threshold_ms: Duration above which the request is flagged as slow
    """
    from flask import current_app

    prefix = f"[req_id={request_id}]" if request_id else "[req_id=na]"

    if slow_threshold_ms and duration_ms > slow_threshold_ms:
        current_app.logger.warning(
            "%s SLOW REQUEST (%s ms): %s %s from %s -> %s",
            prefix,
            f"{duration_ms:.0f}",
            request.method,
            request.path,
            request.remote_addr,
            response.status_code,
            extra={"request_id": request_id},
        )
    elif response.status_code >= 500:
        current_app.logger.error(
            "%s ERROR RESPONSE: %s %s from %s -> %s",
            prefix,
            request.method,
            request.path,
            request.remote_addr,
            response.status_code,
            extra={"request_id": request_id},
        )
    elif response.status_code == 429:
        current_app.logger.warning(
            "%s RATE LIMIT HIT: %s %s from %s",
            prefix,
            request.method,
            request.path,
            request.remote_addr,
            extra={"request_id": request_id},
        )
    elif current_app.debug:
        current_app.logger.debug(
            "%s %s %s -> %s (%s ms)",
            prefix,
            request.method,
            request.path,
            response.status_code,
            f"{duration_ms:.0f}",
            extra={"request_id": request_id},
        )


def log_exception(error, request=None):
    """Log exception with request context and stack trace.

    Args:
        error: Exception object
        request: Flask request object (optional)
    """
    from flask import current_app, g

    error_msg = f"EXCEPTION: {type(error).__name__}: {error}"
    request_id = g.get("request_id") if request else None

    if request:
        error_msg += f"\nRequest: {request.method} {request.path}"
        error_msg += f"\nUser-Agent: {request.headers.get('User-Agent', 'N/A')}"
        error_msg += f"\nIP: {request.remote_addr}"
        if request.args:
            error_msg += f"\nQuery: {dict(request.args)}"

    stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    error_msg += f"\n{'=' * 80}\nStack trace:\n{stack}{'=' * 80}"

    current_app.logger.error(error_msg, extra={"request_id": request_id})
