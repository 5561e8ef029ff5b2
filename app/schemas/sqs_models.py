# app/schemas/sqs_models.py
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class QueueMessage(BaseModel):
    """One delivery of an SQS message; owned by the consumer for a single processing attempt."""
    body: Optional[str] = None
    receipt_handle: str
    message_id: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_sqs(cls, raw: Dict[str, Any]) -> "QueueMessage":
        return cls(
            body=raw.get("Body"),
            receipt_handle=raw.get("ReceiptHandle", ""),
            message_id=raw.get("MessageId"),
            attributes={
                **raw.get("Attributes", {}),
                **raw.get("MessageAttributes", {}),
            },
        )


class UploadRecord(BaseModel):
    event_name: str = ""
    object_key: str
    object_size_bytes: int = 0


class UploadNotification(BaseModel):
    records: List[UploadRecord] = Field(default_factory=list)


class AiProcessingRequest(BaseModel):
    quiz_id: str


class CheckInStatus(str, Enum):
    """Heartbeat check-in states"""
    IN_PROGRESS = "in_progress"
    OK = "ok"
    ERROR = "error"


class HeartbeatCheckIn(BaseModel):
    id: str
    monitor_slug: str
    status: CheckInStatus = CheckInStatus.IN_PROGRESS


class ConsumerStatus(BaseModel):
    name: str
    queue_url: str
    running: bool = False
    iterations: int = 0
    consecutive_errors: int = 0
    last_poll_at: Optional[datetime] = None
