# services/queue_listener_service.py
"""
Queue Listener Service

Runs the two quiz queues as independent QueueConsumer loops:
- file uploads: S3 ObjectCreated notifications → QuizProcessor.mark_item_ready
- AI processing: {"quizId"} requests → QuizProcessor.run_deferred_processing

Each loop keeps its own backoff state and heartbeat slug; both share one
cancellation token so shutdown() stops them together.
"""

import asyncio
from typing import List, Optional

from core.cancellation import CancellationToken
from core.config import Settings, settings as default_settings
from core.logger import logger
from integrations.monitoring import LoggingMonitor, Monitor
from schemas.sqs_models import ConsumerStatus, QueueMessage
from services.envelope_parser import parse_ai_processing_request, parse_upload_notification
from services.heartbeat import HeartbeatReporter
from services.queue_consumer import QueueConsumer, QueueTransport
from services.quiz_processor import QuizProcessor


class QueueListenerService:

    def __init__(
        self,
        processor: QuizProcessor,
        transport: QueueTransport,
        monitor: Optional[Monitor] = None,
        config: Optional[Settings] = None,
    ):
        self.processor = processor
        self.transport = transport
        self.monitor = monitor or LoggingMonitor()
        self.config = config or default_settings
        self.cancellation = CancellationToken()
        self._tasks: List[asyncio.Task] = []

        self.file_upload_consumer = self._build_consumer(
            name="file-uploads",
            queue_url=self.config.AWS_FILE_UPLOADED_SQS_QUEUE_URL,
            handler=self.handle_file_upload_message,
            poll_interval_seconds=self.config.FILE_UPLOAD_POLLING_SLEEP_INTERVAL_SECONDS,
            monitor_slug=self.config.FILE_UPLOAD_MONITOR_SLUG,
        )
        self.ai_processing_consumer = self._build_consumer(
            name="ai-processing",
            queue_url=self.config.AWS_AI_PROCESSING_SQS_QUEUE_URL,
            handler=self.handle_ai_processing_message,
            poll_interval_seconds=self.config.AI_PROCESSING_POLLING_SLEEP_INTERVAL_SECONDS,
            monitor_slug=self.config.AI_PROCESSING_MONITOR_SLUG,
        )

    def _build_consumer(self, name, queue_url, handler, poll_interval_seconds, monitor_slug) -> QueueConsumer:
        return QueueConsumer(
            name=name,
            queue_url=queue_url,
            transport=self.transport,
            handler=handler,
            monitor=self.monitor,
            cancellation=self.cancellation,
            wait_seconds=self.config.SQS_LONG_POLLING_TIMEOUT_SECONDS,
            poll_interval_seconds=poll_interval_seconds,
            heartbeat=HeartbeatReporter(
                self.monitor,
                monitor_slug,
                self.config.HEARTBEAT_EVERY_N_ITERATIONS,
            ),
            backoff_initial_seconds=self.config.ERROR_BACKOFF_INITIAL_SECONDS,
            backoff_max_seconds=self.config.ERROR_BACKOFF_MAX_SECONDS,
        )

    @property
    def consumers(self) -> List[QueueConsumer]:
        return [self.file_upload_consumer, self.ai_processing_consumer]

    # ========================================================================
    # MESSAGE HANDLERS
    # ========================================================================

    async def handle_file_upload_message(self, message: QueueMessage) -> None:
        notification = parse_upload_notification(message.body)
        if not notification.records:
            return

        # gather without return_exceptions: the first failure fails the message
        await asyncio.gather(
            *(self.processor.mark_item_ready(record.object_key) for record in notification.records)
        )
        logger.info(
            "Marked %d uploaded item(s) ready | message_id=%s",
            len(notification.records),
            message.message_id,
        )

    async def handle_ai_processing_message(self, message: QueueMessage) -> None:
        request = parse_ai_processing_request(message.body)
        if request is None:
            return

        await self.processor.run_deferred_processing(request.quiz_id)
        logger.info("AI processing complete for quiz %s", request.quiz_id)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def subscribe_to_file_uploads(self) -> None:
        await self.file_upload_consumer.run()

    async def subscribe_to_ai_processing(self) -> None:
        await self.ai_processing_consumer.run()

    def start(self) -> List[asyncio.Task]:
        """Spawn one task per queue on the running loop."""
        if self._tasks:
            return self._tasks
        self._tasks = [
            asyncio.create_task(self.subscribe_to_file_uploads(), name="file-upload-listener"),
            asyncio.create_task(self.subscribe_to_ai_processing(), name="ai-processing-listener"),
        ]
        return self._tasks

    def shutdown(self) -> None:
        """Signal both loops to stop after their current wait, sleep or batch."""
        if not self.cancellation.cancelled:
            logger.info("Queue listener shutdown requested")
        self.cancellation.cancel()

    async def wait_closed(self, timeout: Optional[float] = None) -> None:
        if not self._tasks:
            return
        done, pending = await asyncio.wait(self._tasks, timeout=timeout)
        for task in pending:
            logger.warning("Listener task %s did not stop in time, cancelling", task.get_name())
            task.cancel()
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error("Listener task %s exited with %r", task.get_name(), task.exception())

    def statuses(self) -> List[ConsumerStatus]:
        return [consumer.status() for consumer in self.consumers]
