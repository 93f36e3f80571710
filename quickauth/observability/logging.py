"""
Structured logging setup for quickauth.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional

_RECORD_ATTRS = frozenset({
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'message',
})


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_file: Optional[str] = None
) -> None:
    """
    Setup application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format_type: Format type (json, text)
        log_file: Optional log file path
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if format_type == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn.access").disabled = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)


class AuditLogger:
    """Security audit logging for authentication events."""

    def __init__(self, logger_name: str = "quickauth.audit"):
        self.logger = get_logger(logger_name)

    def log_registration(
        self,
        email: str,
        success: bool,
        user_id: Optional[str] = None,
        reason: Optional[str] = None
    ):
        """Log registration attempts."""
        level = logging.INFO if success else logging.WARNING
        message = f"Registration {'successful' if success else 'failed'} for {email}"

        self.logger.log(
            level,
            message,
            extra={
                "email": email,
                "user_id": user_id,
                "success": success,
                "reason": reason,
                "event": "registration"
            }
        )

    def log_login_attempt(
        self,
        email: str,
        success: bool,
        user_id: Optional[str] = None,
        reason: Optional[str] = None
    ):
        """
        Log login attempts.

        ``reason`` distinguishes unknown accounts from bad passwords for
        operators; it is never part of the caller-facing result.
        """
        level = logging.INFO if success else logging.WARNING
        message = f"Login {'successful' if success else 'failed'} for {email}"

        self.logger.log(
            level,
            message,
            extra={
                "email": email,
                "user_id": user_id,
                "success": success,
                "reason": reason,
                "event": "login_attempt"
            }
        )

    def log_logout(self, user_id: str):
        self.logger.info(
            f"Logout for user {user_id}",
            extra={"user_id": user_id, "event": "logout"}
        )

    def log_token_verification(self, success: bool, reason: Optional[str] = None):
        """Log a token check; successes at DEBUG."""
        level = logging.DEBUG if success else logging.INFO
        self.logger.log(
            level,
            "Token verified" if success else "Token rejected",
            extra={
                "success": success,
                "reason": reason,
                "event": "token_verification"
            }
        )
