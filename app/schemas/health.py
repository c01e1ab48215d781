"""Health check schemas."""

from typing import Optional
from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Schema for health check responses."""
    status: str
    service: str
    version: str
    database: Optional[str] = None
    timestamp: Optional[str] = None
