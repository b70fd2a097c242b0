"""
SnipStash Backend — Shared Response Schemas
=============================================

What:  Response models used by every route: the error envelope and the
       health check payload.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "not_found", "invalid_credential")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field was rejected)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "invalid_argument",
            "message": "page must be a positive integer",
            "details": {"field": "page"},
            "request_id": "1f0c9a2b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
