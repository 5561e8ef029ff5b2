# integrations/monitoring.py
"""
Error and check-in reporting for the queue workers.

The consumers only depend on the Monitor protocol; LoggingMonitor is the
default and writes every report as a structured log line.
"""

from typing import Any, Dict, Optional, Protocol
from uuid import uuid4

from core.config import settings
from core.logger import logger
from schemas.sqs_models import CheckInStatus
from utils.log_event import log_event


class Monitor(Protocol):
    """Interface for error and heartbeat reporting."""

    def report_error(self, error: BaseException, tags: Optional[Dict[str, Any]] = None) -> None:
        ...

    def report_check_in(self, monitor_slug: str, status: CheckInStatus) -> str:
        """Open a check-in and return its id."""
        ...

    def resolve_check_in(self, monitor_slug: str, check_in_id: str, status: CheckInStatus) -> None:
        ...


class LoggingMonitor:
    """Monitor that reports to the application log."""

    def __init__(self, environment: Optional[str] = None, release: Optional[str] = None):
        self.environment = environment or settings.ENVIRONMENT
        self.release = release or settings.VERSION

    def report_error(self, error: BaseException, tags: Optional[Dict[str, Any]] = None) -> None:
        logger.error(
            "Reported error: %s: %s",
            type(error).__name__,
            error,
            exc_info=(type(error), error, error.__traceback__),
        )
        log_event(
            "error_reported",
            level="error",
            error_type=type(error).__name__,
            error=str(error),
            environment=self.environment,
            release=self.release,
            **(tags or {}),
        )

    def report_check_in(self, monitor_slug: str, status: CheckInStatus) -> str:
        check_in_id = uuid4().hex
        log_event(
            "check_in",
            monitor_slug=monitor_slug,
            check_in_id=check_in_id,
            status=status.value,
            environment=self.environment,
        )
        return check_in_id

    def resolve_check_in(self, monitor_slug: str, check_in_id: str, status: CheckInStatus) -> None:
        log_event(
            "check_in",
            level="warning" if status == CheckInStatus.ERROR else "info",
            monitor_slug=monitor_slug,
            check_in_id=check_in_id,
            status=status.value,
            environment=self.environment,
        )


def safe_report_error(monitor: Monitor, error: BaseException, tags: Optional[Dict[str, Any]] = None) -> None:
    """Report an error without letting a monitoring failure escape."""
    try:
        monitor.report_error(error, tags or {})
    except Exception as e:
        logger.warning(f"Error reporting failed: {e}")
