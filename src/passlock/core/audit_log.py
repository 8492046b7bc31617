# Audit Log - vault security events
#
# JSON lines, one file per day, appended through structlog. Every session
# state change is recorded: create, unlock (and failed unlock), lock, entry
# add/update/delete, save (and failed save).
# Callers pass ids, names and counts only; never a master or entry password.

import logging
import os
import socket
import sys
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

from .config import AUDIT_DIRNAME

AUDIT_LOGGER_NAME = "passlock.audit"


class EventType(str, Enum):
    """Audit event names, dotted by subject."""

    VAULT_CREATED = "vault.created"
    VAULT_UNLOCKED = "vault.unlocked"
    VAULT_UNLOCK_FAILED = "vault.unlock.failed"
    VAULT_LOCKED = "vault.locked"
    VAULT_SAVED = "vault.saved"
    VAULT_SAVE_FAILED = "vault.save.failed"
    VAULT_ERROR = "vault.error"

    VAULT_ENTRY_ADDED = "vault.entry.added"
    VAULT_ENTRY_UPDATED = "vault.entry.updated"
    VAULT_ENTRY_DELETED = "vault.entry.deleted"

    SYSTEM_START = "system.start"
    SYSTEM_STOP = "system.stop"


class EventSeverity(str, Enum):
    """
    How much attention an event deserves.

    - INFO: routine session activity
    - INVESTIGATE: unusual but harmless
    - ALERT: failed unlock
    - CRITICAL: data may be at risk (save failed, handoff rejected)
    """
    INFO = "info"
    INVESTIGATE = "investigate"
    ALERT = "alert"
    CRITICAL = "critical"


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _process_context() -> Dict[str, Any]:
    return {
        "user": os.getenv("USER") or os.getenv("USERNAME"),
        "host": socket.gethostname(),
        "platform": sys.platform,
        "pid": os.getpid(),
    }


class AuditLogger:
    """
    Writes vault events to ``<log_dir>/audit_YYYY-MM-DD.log``.

    Creating a new AuditLogger re-points the shared "passlock.audit" stdlib
    logger at the new directory; the previous file handler is closed.
    """

    def __init__(self, log_dir: Optional[Path] = None):
        self.log_dir = Path(log_dir) if log_dir else Path.home() / AUDIT_DIRNAME
        self.log_dir.mkdir(parents=True, exist_ok=True)

        _configure_structlog()
        self.log_file = self._attach_handler()
        self.logger = structlog.get_logger(AUDIT_LOGGER_NAME)

    def _attach_handler(self) -> Path:
        log_file = self.log_dir / f"audit_{date.today().isoformat()}.log"

        handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter("%(message)s"))

        stdlib_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        for old in list(stdlib_logger.handlers):
            stdlib_logger.removeHandler(old)
            old.close()
        stdlib_logger.addHandler(handler)
        stdlib_logger.setLevel(logging.INFO)
        # Audit lines must not leak into the console log
        stdlib_logger.propagate = False

        return log_file

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Append one event.

        Args:
            event_type: What happened
            severity: How serious it is
            message: Short description for humans
            details: Extra fields (ids, counts, return codes)
            user_context: Replaces the OS user/host/pid context

        Returns:
            The event id
        """
        event_id = uuid4().hex

        self.logger.info(
            "vault_event",
            event_id=event_id,
            event_type=event_type.value,
            severity=severity.value,
            message=message,
            occurred_at=datetime.now(timezone.utc).isoformat(),
            details=details or {},
            user_context=user_context or _process_context(),
        )
        return event_id

    def log_vault_event(
        self,
        event_type: EventType,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ) -> str:
        """Shorthand for an INFO event."""
        return self.log_event(event_type, EventSeverity.INFO, f"Vault: {message}", details)


_audit_logger: Optional[AuditLogger] = None


def configure_audit_logger(log_dir: Path) -> AuditLogger:
    """Point the shared audit logger at ``log_dir``."""
    global _audit_logger
    _audit_logger = AuditLogger(log_dir=log_dir)
    return _audit_logger


def get_audit_logger() -> AuditLogger:
    """Shared audit logger, created on first use in the default directory."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def log_security_event(
    event_type: EventType,
    severity: EventSeverity,
    message: str,
    **kwargs
) -> str:
    """Module-level shortcut for ``get_audit_logger().log_event(...)``."""
    return get_audit_logger().log_event(event_type, severity, message, **kwargs)
