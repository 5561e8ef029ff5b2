# services/queue_consumer.py
"""
Queue Consumer

Owns the poll → process → acknowledge loop for a single queue:
1. Long poll the queue for a batch (cancellable)
2. Process every message of the batch concurrently through the handler
3. Delete exactly the messages whose handler completed without raising
4. On a loop-level failure (e.g. ReceiveMessage erroring) back off exponentially
5. Check in with the monitor on the loop's own cadence

Delivery is at-least-once: a failed message is left in the queue and comes back
after the visibility timeout; retry limits and dead-lettering belong to the
queue's redrive policy.
"""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Protocol

from core.cancellation import CancellationToken
from core.config import settings
from core.logger import logger
from integrations.monitoring import Monitor, safe_report_error
from schemas.sqs_models import ConsumerStatus, QueueMessage
from services.backoff import error_backoff_seconds
from services.heartbeat import HeartbeatReporter
from utils.log_event import log_event

MessageHandler = Callable[[QueueMessage], Awaitable[None]]


# ============================================================================
# INTERFACES (PROTOCOLS)
# ============================================================================

class QueueTransport(Protocol):
    """Interface for the queue the consumer drains."""

    async def receive(
        self,
        queue_url: str,
        wait_seconds: int,
        cancellation: CancellationToken,
    ) -> List[QueueMessage]:
        ...

    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        ...


# ============================================================================
# CONSUMER
# ============================================================================

class QueueConsumer:
    """Polls one queue until the shared cancellation token fires."""

    def __init__(
        self,
        name: str,
        queue_url: str,
        transport: QueueTransport,
        handler: MessageHandler,
        monitor: Monitor,
        cancellation: CancellationToken,
        *,
        wait_seconds: Optional[int] = None,
        poll_interval_seconds: float = 0,
        heartbeat: Optional[HeartbeatReporter] = None,
        backoff_initial_seconds: Optional[float] = None,
        backoff_max_seconds: Optional[float] = None,
    ):
        self.name = name
        self.queue_url = queue_url
        self.transport = transport
        self.handler = handler
        self.monitor = monitor
        self.cancellation = cancellation
        self.wait_seconds = settings.SQS_LONG_POLLING_TIMEOUT_SECONDS if wait_seconds is None else wait_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.heartbeat = heartbeat or HeartbeatReporter(
            monitor, name, settings.HEARTBEAT_EVERY_N_ITERATIONS
        )
        self.backoff_initial_seconds = backoff_initial_seconds
        self.backoff_max_seconds = backoff_max_seconds

        # Only touched by the loop task, never by per-message tasks
        self.consecutive_errors = 0
        self.running = False
        self.last_poll_at: Optional[datetime] = None

    async def run(self) -> None:
        """Run until cancelled. Never returns because of a processing or transport error."""
        self.running = True
        logger.info(
            "Queue consumer %s started | queue=%s | wait_time=%ss | poll_interval=%ss",
            self.name,
            self.queue_url,
            self.wait_seconds,
            self.poll_interval_seconds,
        )
        try:
            while not self.cancellation.cancelled:
                if await self.run_iteration():
                    break
        finally:
            self.heartbeat.close()
            self.running = False
            logger.info("Queue consumer %s stopped", self.name)

    async def run_iteration(self) -> bool:
        """
        One poll cycle, including the sleep that follows it.

        Returns:
            bool: True once cancellation has been observed
        """
        self.heartbeat.begin_iteration()
        try:
            logger.debug(f"Polling {self.queue_url} for messages")
            messages = await self.transport.receive(self.queue_url, self.wait_seconds, self.cancellation)
            self.last_poll_at = datetime.now(timezone.utc)

            if not messages and self.cancellation.cancelled:
                return True
            if messages:
                await self.process_batch(messages)

        except Exception as e:
            self.consecutive_errors += 1
            delay = error_backoff_seconds(
                self.consecutive_errors,
                self.backoff_initial_seconds,
                self.backoff_max_seconds,
            )
            logger.exception(
                "Queue consumer %s loop error (consecutive=%d), retrying in %ss: %s",
                self.name,
                self.consecutive_errors,
                delay,
                e,
            )
            safe_report_error(
                self.monitor,
                e,
                {"queue": self.name, "consecutive_errors": self.consecutive_errors},
            )
            self.heartbeat.end_iteration(ok=False)
            return await self.cancellation.sleep(delay)

        self.consecutive_errors = 0
        self.heartbeat.end_iteration(ok=True)
        return await self.cancellation.sleep(self.poll_interval_seconds)

    async def process_batch(self, messages: List[QueueMessage]) -> List[bool]:
        """Process messages concurrently; returns per-message success in batch order."""
        return list(await asyncio.gather(*(self.process_message(m) for m in messages)))

    async def process_message(self, message: QueueMessage) -> bool:
        """
        Handle one message and delete it only if the handler completed.
        Failures are reported here and never propagate to the loop.
        """
        try:
            await self.handler(message)
        except Exception as e:
            logger.exception(f"Error processing message {message.message_id} from {self.name}: {e}")
            log_event(
                "queue_message_failed",
                level="error",
                queue=self.name,
                message_id=message.message_id,
                error=str(e),
            )
            safe_report_error(
                self.monitor,
                e,
                {"queue": self.name, "message_id": message.message_id},
            )
            return False

        try:
            await self.transport.delete(self.queue_url, message.receipt_handle)
        except Exception as e:
            # Processed but still visible; it will be redelivered and processed again
            logger.exception(f"Error deleting message {message.message_id} from {self.name}: {e}")
            safe_report_error(
                self.monitor,
                e,
                {"queue": self.name, "message_id": message.message_id, "stage": "delete"},
            )
            return False

        log_event("queue_message_processed", queue=self.name, message_id=message.message_id)
        return True

    def status(self) -> ConsumerStatus:
        return ConsumerStatus(
            name=self.name,
            queue_url=self.queue_url,
            running=self.running,
            iterations=self.heartbeat.iterations,
            consecutive_errors=self.consecutive_errors,
            last_poll_at=self.last_poll_at,
        )
