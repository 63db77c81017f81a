"""Health check response model."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    What:  Service and dependency status for monitoring and load balancers.
    Who:   Returned by GET /health.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
