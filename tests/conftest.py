"""
tests/conftest.py

Shared fakes for the queue worker tests.

FakeQueueTransport replays scripted poll results (a batch of messages or an
exception) and cancels the consumer's token once the script is exhausted, so
a consumer loop runs a bounded number of iterations and then stops the same
way it does on shutdown.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Union

import pytest

from core.cancellation import CancellationToken
from schemas.sqs_models import CheckInStatus, QueueMessage


def make_message(body: Optional[str], receipt_handle: str = "test-receipt-handle", message_id: str = "msg-1") -> QueueMessage:
    return QueueMessage(body=body, receipt_handle=receipt_handle, message_id=message_id)


def upload_body(*keys: str, event_name: str = "ObjectCreated:Put") -> str:
    records = [{"eventName": event_name, "s3": {"object": {"key": key, "size": 100}}} for key in keys]
    return json.dumps({"Message": json.dumps({"Records": records})})


class FakeQueueTransport:
    def __init__(self, script: Optional[List[Union[List[QueueMessage], Exception]]] = None):
        self.script = list(script or [])
        self.receive_calls: List[Dict[str, Any]] = []
        self.deleted: List[str] = []
        self.sent: List[Dict[str, str]] = []
        self.delete_error: Optional[Exception] = None

    async def receive(self, queue_url: str, wait_seconds: int, cancellation: CancellationToken) -> List[QueueMessage]:
        self.receive_calls.append({"queue_url": queue_url, "wait_seconds": wait_seconds})
        if not self.script:
            cancellation.cancel()
            return []
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted.append(receipt_handle)

    async def send(self, queue_url: str, body: str) -> str:
        self.sent.append({"queue_url": queue_url, "body": body})
        return f"sent-{len(self.sent)}"


class BlockingQueueTransport(FakeQueueTransport):
    """Long poll that only returns when shutdown is signalled, like an idle queue."""

    async def receive(self, queue_url: str, wait_seconds: int, cancellation: CancellationToken) -> List[QueueMessage]:
        self.receive_calls.append({"queue_url": queue_url, "wait_seconds": wait_seconds})
        await cancellation.wait()
        return []


class RecordingMonitor:
    def __init__(self):
        self.errors: List[Dict[str, Any]] = []
        self.check_ins: List[Dict[str, Any]] = []
        self.resolved: List[Dict[str, Any]] = []

    def report_error(self, error: BaseException, tags: Optional[Dict[str, Any]] = None) -> None:
        self.errors.append({"error": error, "tags": tags or {}})

    def report_check_in(self, monitor_slug: str, status: CheckInStatus) -> str:
        check_in_id = f"check-in-{len(self.check_ins) + 1}"
        self.check_ins.append({"monitor_slug": monitor_slug, "status": status, "id": check_in_id})
        return check_in_id

    def resolve_check_in(self, monitor_slug: str, check_in_id: str, status: CheckInStatus) -> None:
        self.resolved.append({"monitor_slug": monitor_slug, "id": check_in_id, "status": status})


class FakeQuizProcessor:
    def __init__(self):
        self.ready_keys: List[str] = []
        self.processed_quiz_ids: List[str] = []
        self.fail_keys: Dict[str, Exception] = {}
        self.fail_quiz_ids: Dict[str, Exception] = {}

    async def mark_item_ready(self, key: str) -> None:
        if key in self.fail_keys:
            raise self.fail_keys[key]
        self.ready_keys.append(key)

    async def run_deferred_processing(self, quiz_id: str) -> None:
        if quiz_id in self.fail_quiz_ids:
            raise self.fail_quiz_ids[quiz_id]
        self.processed_quiz_ids.append(quiz_id)


@pytest.fixture
def monitor() -> RecordingMonitor:
    return RecordingMonitor()


@pytest.fixture
def processor() -> FakeQuizProcessor:
    return FakeQuizProcessor()
