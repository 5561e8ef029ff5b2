# schemas/health_models.py
from pydantic import BaseModel, Field
from typing import List, Literal

from schemas.sqs_models import ConsumerStatus


class HealthResponse(BaseModel):
    """Liveness of the worker and each queue consumer"""
    status: Literal["healthy", "degraded", "disabled"] = "healthy"
    message: str = ""
    version: str = ""
    consumers: List[ConsumerStatus] = Field(default_factory=list)
