"""
EduConnect - Centralized Logging Configuration
Supports plain text (default) and JSON structured logging
"""

import logging
import sys
import json
import traceback
from datetime import datetime, timezone
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar


# Context variables for the active session
role_var: ContextVar[str] = ContextVar('role', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')


def get_role() -> str:
    """Get current role from context"""
    return role_var.get() or ''


def set_role(role: str) -> None:
    """Set role in context"""
    role_var.set(role or '')


def get_user_id() -> str:
    """Get current user ID from context"""
    return user_id_var.get() or ''


def set_user_id(user_id: str) -> None:
    """Set user ID in context"""
    user_id_var.set(user_id or '')


_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName', 'role', 'user_id',
}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    One object per line, suitable for log shipping.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        role = get_role()
        if role:
            log_data["role"] = role

        user_id = get_user_id()
        if user_id:
            log_data["user_id"] = user_id

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info) if record.exc_info[0] else None
            }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith('_'):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """
    Formatter that includes the session context (role, user_id).
    Used for readable output.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.role = get_role() or '-'
        record.user_id = get_user_id() or '-'

        return super().format(record)


class EduConnectLogger(logging.Logger):
    """
    Logger with convenience methods for structured logging
    """

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **kwargs) -> None:
        """Log HTTP request details"""
        level = logging.WARNING if status_code == 0 or status_code >= 400 else logging.DEBUG
        self.log(
            level,
            f"HTTP {method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": duration_ms,
                **kwargs
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: str = None,
                       reason: str = None, **kwargs) -> None:
        """Log authentication events"""
        level = logging.INFO if success else logging.WARNING
        self.log(
            level,
            f"Auth {event}: {'success' if success else 'failed'}" +
            (f" - {user_email}" if user_email else "") +
            (f" - {reason}" if reason else ""),
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_transition(self, workflow: str, old_state: str, new_state: str, **kwargs) -> None:
        """Log a workflow state change"""
        self.debug(
            f"{workflow}: {old_state} -> {new_state}",
            extra={
                "event_type": "transition",
                "workflow": workflow,
                "from_state": old_state,
                "to_state": new_state,
                **kwargs
            }
        )


def get_logger(name: str) -> EduConnectLogger:
    """Get a child of the package logger"""
    logging.setLoggerClass(EduConnectLogger)
    logger = logging.getLogger(f"educonnect.{name}" if not name.startswith("educonnect") else name)
    if not isinstance(logger, EduConnectLogger):
        logger.__class__ = EduConnectLogger
    return logger


def setup_logging(level: str = "INFO", log_file: Optional[str] = None,
                  json_logs: bool = False) -> EduConnectLogger:
    """Configure the package logger. Safe to call more than once."""
    logging.setLoggerClass(EduConnectLogger)

    logger = logging.getLogger("educonnect")
    logger.__class__ = EduConnectLogger
    logger.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))
    logger.propagate = False

    logger.handlers.clear()

    if json_logs:
        console_formatter = JSONFormatter()
        file_formatter = JSONFormatter()
    else:
        detailed_format = (
            "%(asctime)s | %(levelname)-8s | "
            "[%(role)s] [%(user_id)s] | "
            "%(name)s:%(lineno)d | %(message)s"
        )
        simple_format = "%(levelname)-8s | %(message)s"
        console_formatter = ContextualFormatter(simple_format)
        file_formatter = ContextualFormatter(detailed_format)

    # Console stays quiet; the rich UI reports outcomes to the user
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=1048576,  # 1MB
            backupCount=3
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.debug(
        "Logging initialized",
        extra={"log_level": level, "json_logging": json_logs}
    )

    return logger


__all__ = [
    'setup_logging',
    'get_logger',
    'get_role',
    'set_role',
    'get_user_id',
    'set_user_id',
    'EduConnectLogger',
    'JSONFormatter',
    'ContextualFormatter',
]
