# core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional


class Settings(BaseSettings):
    """
    Centralized worker configuration.
    Grouped logically for readability; every value can be overridden from the environment or .env.
    """

    # ------------------------------------------------------------
    # Project / Runtime
    # ------------------------------------------------------------
    PROJECT_NAME: str = "Quizlord Queue Worker"
    VERSION: str = "development"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # ------------------------------------------------------------
    # AWS Core
    # ------------------------------------------------------------
    AWS_REGION: str = "ap-southeast-2"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_SESSION_TOKEN: Optional[str] = None

    # ------------------------------------------------------------
    # Messaging (SQS)
    # ------------------------------------------------------------
    AWS_FILE_UPLOADED_SQS_QUEUE_URL: str = Field(
        default="",
        description="Queue receiving S3 ObjectCreated notifications (wrapped by SNS)",
    )
    AWS_AI_PROCESSING_SQS_QUEUE_URL: str = Field(
        default="",
        description="Queue receiving {\"quizId\": ...} AI extraction requests",
    )

    """
    Long poll bound for ReceiveMessage; SQS allows 0-20 seconds
    """
    SQS_LONG_POLLING_TIMEOUT_SECONDS: int = Field(default=10, ge=0, le=20)
    SQS_MAX_NUMBER_OF_MESSAGES: int = Field(default=10, ge=1, le=10)

    """
    Pause between polls once a batch has been handled
    """
    FILE_UPLOAD_POLLING_SLEEP_INTERVAL_SECONDS: float = 0
    AI_PROCESSING_POLLING_SLEEP_INTERVAL_SECONDS: float = 60

    """
    Backoff after a failed poll cycle: min(initial * 2^(n-1), max)
    """
    ERROR_BACKOFF_INITIAL_SECONDS: float = 5
    ERROR_BACKOFF_MAX_SECONDS: float = 60

    ENABLE_QUEUE_CONSUMERS: bool = True

    """
    Import path ("package.module:attribute") of the QuizProcessor the consumers dispatch to.
    The attribute may be an instance or a zero-argument factory.
    """
    QUIZ_PROCESSOR_PATH: Optional[str] = None

    # ------------------------------------------------------------
    # Monitoring / Heartbeats
    # ------------------------------------------------------------
    HEARTBEAT_EVERY_N_ITERATIONS: int = Field(
        default=1,
        ge=1,
        description="Open an in_progress check-in on every N-th poll iteration",
    )
    FILE_UPLOAD_MONITOR_SLUG: str = "file-upload-queue-listener"
    AI_PROCESSING_MONITOR_SLUG: str = "ai-processing-queue-listener"

    # ------------------------------------------------------------
    # Paging
    # ------------------------------------------------------------
    DEFAULT_PAGE_LIMIT: int = 100
    MAX_PAGE_LIMIT: int = 1000

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
