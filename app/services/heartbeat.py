# services/heartbeat.py
from typing import Optional

from core.logger import logger
from integrations.monitoring import Monitor
from schemas.sqs_models import CheckInStatus, HeartbeatCheckIn


class HeartbeatReporter:
    """
    Liveness check-ins driven by a consumer's loop iterations.

    Every N-th iteration opens an in_progress check-in which is resolved
    (same id) when that iteration ends, or as ok on shutdown. The cadence
    follows the loop, not message volume, so an idle queue still checks in.
    The most recently resolved check-in, with its final status, is kept
    as `last_check_in`. Monitor failures are logged and never reach the loop.
    """

    def __init__(self, monitor: Monitor, monitor_slug: str, every_n_iterations: int = 1):
        if every_n_iterations < 1:
            raise ValueError("every_n_iterations must be >= 1")
        self.monitor = monitor
        self.monitor_slug = monitor_slug
        self.every_n_iterations = every_n_iterations
        self.iterations = 0
        self.open_check_in: Optional[HeartbeatCheckIn] = None
        self.last_check_in: Optional[HeartbeatCheckIn] = None

    def begin_iteration(self) -> None:
        self.iterations += 1
        if self.open_check_in is not None:
            return
        if (self.iterations - 1) % self.every_n_iterations != 0:
            return

        try:
            check_in_id = self.monitor.report_check_in(self.monitor_slug, CheckInStatus.IN_PROGRESS)
        except Exception as e:
            logger.warning(f"Heartbeat check-in failed for {self.monitor_slug}: {e}")
            return
        self.open_check_in = HeartbeatCheckIn(id=check_in_id, monitor_slug=self.monitor_slug)

    def end_iteration(self, ok: bool) -> None:
        self._resolve(CheckInStatus.OK if ok else CheckInStatus.ERROR)

    def close(self) -> None:
        self._resolve(CheckInStatus.OK)

    def _resolve(self, status: CheckInStatus) -> None:
        check_in = self.open_check_in
        if check_in is None:
            return
        self.open_check_in = None
        self.last_check_in = check_in.model_copy(update={"status": status})

        try:
            self.monitor.resolve_check_in(self.monitor_slug, check_in.id, status)
        except Exception as e:
            logger.warning(f"Heartbeat resolve failed for {self.monitor_slug} ({check_in.id}): {e}")
