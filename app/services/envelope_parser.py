# services/envelope_parser.py
"""
Message Envelope Parser

Decodes queue message bodies into typed records:
1. Upload notifications: S3 event JSON string-encoded inside an SNS envelope
   {"Message": "{\"Records\": [...]}"}
2. AI processing requests: {"quizId": "..."} with no wrapping

Invalid JSON raises EnvelopeDecodeError so the caller leaves the message in the queue.
Valid JSON of an unexpected shape is logged and parsed as "nothing to process".
"""

import json
from typing import Any, Dict, List, Optional

from core.logger import logger
from schemas.sqs_models import AiProcessingRequest, UploadNotification, UploadRecord

EXPECTED_UPLOAD_EVENT_NAME = "ObjectCreated:Put"


class EnvelopeDecodeError(ValueError):
    """Message body (or the notification nested in it) is not valid JSON."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


def _decode_json(raw: str, what: str) -> Any:
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise EnvelopeDecodeError(f"Invalid JSON in {what}: {e}", cause=e) from e


def _parse_record(raw: Any) -> Optional[UploadRecord]:
    if not isinstance(raw, dict):
        logger.warning("Skipping upload record that is not an object: %r", raw)
        return None

    s3 = raw.get("s3")
    s3_object = s3.get("object") if isinstance(s3, dict) else None
    if not isinstance(s3_object, dict):
        logger.warning("Skipping upload record without an s3.object: %s", raw)
        return None

    key = s3_object.get("key")
    if not isinstance(key, str) or not key:
        logger.warning("Skipping upload record without s3.object.key: %s", raw)
        return None

    event_name = raw.get("eventName")
    if not isinstance(event_name, str):
        event_name = ""
    if event_name != EXPECTED_UPLOAD_EVENT_NAME:
        logger.warning(f"Unexpected event name <{event_name}> for key {key}")

    size = s3_object.get("size")
    return UploadRecord(
        event_name=event_name,
        object_key=key,
        object_size_bytes=size if isinstance(size, int) else 0,
    )


def parse_upload_notification(body: Optional[str]) -> UploadNotification:
    """
    Recover the S3 upload records from an SNS-wrapped notification.

    Raises:
        EnvelopeDecodeError: if either JSON layer fails to decode
    """
    if not body:
        logger.warning("Unexpected empty message body")
        return UploadNotification()

    envelope = _decode_json(body, "message body")
    if not isinstance(envelope, dict) or not envelope.get("Message"):
        logger.warning("Unexpected empty inner message body: %s", body[:500])
        return UploadNotification()

    inner = envelope["Message"]
    content = _decode_json(inner, "notification message") if isinstance(inner, str) else inner
    if not isinstance(content, dict):
        logger.warning("Unexpected notification message shape: %r", content)
        return UploadNotification()

    raw_records = content.get("Records")
    if raw_records is None:
        logger.warning("Notification has no Records field, nothing to process")
        return UploadNotification()
    if not isinstance(raw_records, list):
        logger.warning("Notification Records is not a list: %r", raw_records)
        return UploadNotification()

    records: List[UploadRecord] = []
    for raw in raw_records:
        record = _parse_record(raw)
        if record is not None:
            records.append(record)
    return UploadNotification(records=records)


def parse_ai_processing_request(body: Optional[str]) -> Optional[AiProcessingRequest]:
    """
    Decode an AI processing request; None when there is no quizId to process.

    Raises:
        EnvelopeDecodeError: if the body is not valid JSON
    """
    if not body:
        logger.warning("Unexpected empty message body")
        return None

    payload: Dict[str, Any] = _decode_json(body, "message body")
    quiz_id = payload.get("quizId") if isinstance(payload, dict) else None
    if isinstance(quiz_id, bool) or not isinstance(quiz_id, (str, int)) or not quiz_id:
        logger.warning("Unexpected message body, no quizId: %s", body[:500])
        return None

    return AiProcessingRequest(quiz_id=str(quiz_id))
