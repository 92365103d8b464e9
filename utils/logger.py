"""
Logging helpers shared by the services.
Plain stdlib logging; structured fields travel in `extra` so a JSON formatter
can pick them up without changing call sites.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"

auth_logger = logging.getLogger("school_admin.auth")
perf_logger = logging.getLogger("school_admin.perf")
http_logger = logging.getLogger("school_admin.http")


def configure_logging(level: str = "INFO") -> None:
    """Install a root handler once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level.upper())


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_auth(message: str, user_id: str, **metadata) -> None:
    """Record an authentication event for a user."""
    auth_logger.info(
        "%s (user=%s)",
        message,
        user_id,
        extra={
            "event": "auth",
            "user_id": user_id,
            "metadata": {**metadata, "timestamp": utc_timestamp()},
        },
    )


@contextmanager
def timed(operation: str, logger: logging.Logger | None = None):
    log = logger or perf_logger
    log.debug("Started %s", operation, extra={"operation": operation})
    start = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        log.info(
            "Completed %s in %sms",
            operation,
            duration_ms,
            extra={"operation": operation, "duration_ms": duration_ms},
        )


def log_request(method: str, path: str, status_code: int, duration_ms: float | None, **metadata) -> None:
    """One access-log record per request; server errors are logged as errors."""
    level = logging.ERROR if status_code >= 500 else logging.INFO
    http_logger.log(
        level,
        "%s %s %s %sms",
        method,
        path,
        status_code,
        duration_ms,
        extra={
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            **metadata,
        },
    )
