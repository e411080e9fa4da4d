"""Schemas for probes, instance info and simulation endpoints"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialises snake_case fields as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LivenessResponse(CamelModel):
    live: bool
    reason: Optional[str] = None


class ReadinessResponse(CamelModel):
    ready: bool


class RootResponse(CamelModel):
    message: str
    instance_id: str
    availability_zone: str
    ready: bool
    timestamp: str = Field(description="ISO-8601 UTC")


class MetadataResponse(CamelModel):
    instance_id: str
    availability_zone: str
    fetched_at: int = Field(description="Epoch milliseconds of the last lookup")


class WhoAmIResponse(CamelModel):
    instance_id: str
    availability_zone: str
    pid: int
    ready: bool
    time: str = Field(description="ISO-8601 UTC")


class SimulateReadyResponse(CamelModel):
    ready: bool


class SimulateShutdownResponse(CamelModel):
    shutting_down: bool = True
    note: str
