# app/integrations/sqs_client.py
"""
SQS queue transport.

boto3 is synchronous, so every call runs in a worker thread. The long poll
additionally races the cancellation token: on shutdown the poll returns an
empty batch right away and whatever the abandoned ReceiveMessage call
delivers becomes visible again after the queue's visibility timeout.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from core.aws_client import get_sqs_client
from core.cancellation import CancellationToken
from core.config import settings
from core.logger import logger
from schemas.sqs_models import QueueMessage


class QueueTransportError(Exception):
    """An SQS call failed (network, throttling, credentials, missing queue)."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class SQSQueueTransport:
    """receive/delete/send against SQS queue URLs using an injected boto3 client."""

    def __init__(self, client=None, max_number_of_messages: Optional[int] = None):
        self._client = client
        self.max_number_of_messages = max_number_of_messages or settings.SQS_MAX_NUMBER_OF_MESSAGES

    @property
    def client(self):
        if self._client is None:
            self._client = get_sqs_client()
        return self._client

    # ========================================================================
    # SYNC CALLS (run in worker threads)
    # ========================================================================

    def _receive_sync(self, queue_url: str, wait_seconds: int) -> List[QueueMessage]:
        try:
            response = self.client.receive_message(
                QueueUrl=queue_url,
                MaxNumberOfMessages=self.max_number_of_messages,
                WaitTimeSeconds=wait_seconds,
                MessageAttributeNames=["All"],
            )
        except (ClientError, BotoCoreError) as e:
            raise QueueTransportError(f"ReceiveMessage failed for {queue_url}: {e}", cause=e) from e
        return [QueueMessage.from_sqs(raw) for raw in response.get("Messages", [])]

    def _delete_sync(self, queue_url: str, receipt_handle: str) -> None:
        try:
            self.client.delete_message(QueueUrl=queue_url, ReceiptHandle=receipt_handle)
        except (ClientError, BotoCoreError) as e:
            raise QueueTransportError(f"DeleteMessage failed for {queue_url}: {e}", cause=e) from e

    def _send_sync(self, queue_url: str, body: str) -> str:
        try:
            response = self.client.send_message(QueueUrl=queue_url, MessageBody=body)
        except (ClientError, BotoCoreError) as e:
            raise QueueTransportError(f"SendMessage failed for {queue_url}: {e}", cause=e) from e
        return response.get("MessageId", "")

    # ========================================================================
    # ASYNC API
    # ========================================================================

    async def receive(
        self,
        queue_url: str,
        wait_seconds: int,
        cancellation: CancellationToken,
    ) -> List[QueueMessage]:
        """
        Long poll for a batch of messages.

        Returns an empty list when the queue stayed empty for `wait_seconds`
        or when `cancellation` fired during the wait.

        Raises:
            QueueTransportError: if ReceiveMessage fails
        """
        if cancellation.cancelled:
            return []

        receive_task = asyncio.ensure_future(asyncio.to_thread(self._receive_sync, queue_url, wait_seconds))
        cancel_task = asyncio.ensure_future(cancellation.wait())
        try:
            await asyncio.wait({receive_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()

        if receive_task.done():
            return receive_task.result()

        receive_task.cancel()
        logger.info("Long poll on %s abandoned due to shutdown", queue_url)
        return []

    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        await asyncio.to_thread(self._delete_sync, queue_url, receipt_handle)

    async def send(self, queue_url: str, body: str) -> str:
        return await asyncio.to_thread(self._send_sync, queue_url, body)


class SQSQueuePublisher:
    """Publishes work for the consumers; used by request-handling code, not the listeners."""

    def __init__(self, transport: Optional[SQSQueueTransport] = None, ai_processing_queue_url: Optional[str] = None):
        self.transport = transport or SQSQueueTransport()
        self.ai_processing_queue_url = ai_processing_queue_url or settings.AWS_AI_PROCESSING_SQS_QUEUE_URL

    async def publish_json(self, queue_url: str, envelope: Dict[str, Any]) -> str:
        """
        Publish a JSON message to SQS.
        Assumes body <= 256KB. If larger, send a small body with a pointer to S3 instead.
        """
        body = json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)
        msg_id = await self.transport.send(queue_url, body)
        logger.info("SQS publish ok queue=%s msg_id=%s size=%d", queue_url, msg_id, len(body))
        return msg_id

    async def queue_ai_processing(self, quiz_id: str) -> str:
        return await self.publish_json(self.ai_processing_queue_url, {"quizId": quiz_id})
