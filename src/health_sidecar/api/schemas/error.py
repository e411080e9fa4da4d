"""
Error schemas - Pydantic models for error responses

`error` carries the machine-readable code so probes and scripts can match on
it directly, e.g. {"error": "already_shutting_down", ...}.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorResponse(BaseModel):
    """API error response - standardized format"""
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional context (current phase, received value, ...)"
    )
    timestamp: datetime = Field(default_factory=_utcnow, description="When the error occurred")
    request_id: Optional[str] = Field(None, description="Request ID for logging/debugging")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "already_shutting_down",
                "message": "Shutdown is already in progress",
                "details": {"phase": "DRAINING"},
                "timestamp": "2025-11-26T10:30:00Z",
                "request_id": "9b2c0c6e-..."
            }
        }
    )
