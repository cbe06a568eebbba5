"""Schemas for the health endpoint."""

from datetime import datetime

from pydantic import BaseModel


class HealthyResponse(BaseModel):
    status: str = "healthy"
    timestamp: datetime
    environment: str


class UnhealthyResponse(BaseModel):
    status: str = "unhealthy"
    error: str
