# core/aws_client.py
"""
Centralized AWS client factory to ensure proper credential handling.
Explicit credentials from settings win; otherwise boto3 falls back to its default chain.
"""
import os

import boto3
from botocore.config import Config

from core.config import settings
from core.logger import logger


def _credentials():
    return {
        "aws_access_key_id": getattr(settings, "AWS_ACCESS_KEY_ID", None) or os.getenv("AWS_ACCESS_KEY_ID"),
        "aws_secret_access_key": getattr(settings, "AWS_SECRET_ACCESS_KEY", None) or os.getenv("AWS_SECRET_ACCESS_KEY"),
        "aws_session_token": getattr(settings, "AWS_SESSION_TOKEN", None) or os.getenv("AWS_SESSION_TOKEN"),
    }


def get_sqs_client():
    """Get SQS client with proper credentials."""
    try:
        # Long polls hold the connection open for up to 20s, keep read timeout above that
        config = Config(
            read_timeout=settings.SQS_LONG_POLLING_TIMEOUT_SECONDS + 15,
            connect_timeout=10,
            retries={"max_attempts": 3, "mode": "standard"},
        )
        client = boto3.client(
            "sqs",
            region_name=settings.AWS_REGION,
            config=config,
            **_credentials(),
        )
        logger.info("SQS client initialized region=%s", settings.AWS_REGION)
        return client
    except Exception as e:
        logger.error(f"Failed to initialize SQS client: {str(e)}")
        raise


def validate_aws_credentials() -> bool:
    """Check that AWS credentials are configured; boto3 may still find an instance role."""
    creds = _credentials()
    if not creds["aws_access_key_id"] or not creds["aws_secret_access_key"]:
        logger.warning(
            "No explicit AWS credentials in settings or environment; relying on the default boto3 chain"
        )
        return False

    logger.info("AWS credentials found")
    return True
