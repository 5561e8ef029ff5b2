from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.aws_client import validate_aws_credentials
from core.config import settings
from core.logger import logger
from integrations.monitoring import LoggingMonitor
from integrations.sqs_client import SQSQueueTransport
from services.queue_listener_service import QueueListenerService
from services.quiz_processor import load_quiz_processor

# Seconds to let in-flight messages finish after shutdown is signalled
SHUTDOWN_GRACE_SECONDS = 30


def build_listener_service(app: FastAPI):
    """
    Listener wired from app.state overrides (tests, embedding hosts) or settings.
    Returns None when consumers are disabled or no processor is configured.
    """
    if not settings.ENABLE_QUEUE_CONSUMERS:
        logger.info("Queue consumers disabled by configuration")
        return None

    processor = getattr(app.state, "quiz_processor", None)
    if processor is None and settings.QUIZ_PROCESSOR_PATH:
        processor = load_quiz_processor(settings.QUIZ_PROCESSOR_PATH)
    if processor is None:
        logger.warning("No quiz processor configured (QUIZ_PROCESSOR_PATH); queue consumers not started")
        return None

    transport = getattr(app.state, "queue_transport", None)
    if transport is None:
        validate_aws_credentials()
        transport = SQSQueueTransport()

    monitor = getattr(app.state, "monitor", None) or LoggingMonitor()
    return QueueListenerService(processor=processor, transport=transport, monitor=monitor)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Starts the queue listeners with the app and drains them on shutdown.
    """
    listener = build_listener_service(app)
    app.state.queue_listener = listener
    if listener is not None:
        listener.start()
        logger.info("Lifespan startup: queue listeners running.")

    yield

    if listener is not None:
        listener.shutdown()
        await listener.wait_closed(timeout=SHUTDOWN_GRACE_SECONDS)
    logger.info("Lifespan shutdown.")
