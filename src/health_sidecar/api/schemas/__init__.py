"""
API schemas - Pydantic response models
"""

from .error import ErrorResponse
from .health import (
    LivenessResponse,
    ReadinessResponse,
    RootResponse,
    MetadataResponse,
    WhoAmIResponse,
    SimulateReadyResponse,
    SimulateShutdownResponse,
)

__all__ = [
    "ErrorResponse",
    "LivenessResponse",
    "ReadinessResponse",
    "RootResponse",
    "MetadataResponse",
    "WhoAmIResponse",
    "SimulateReadyResponse",
    "SimulateShutdownResponse",
]
