"""
Instance information endpoints - which instance / AZ served this request
"""

import os
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from health_sidecar.api.dependencies import get_services
from health_sidecar.api.schemas.health import MetadataResponse, RootResponse, WhoAmIResponse
from health_sidecar.services.service_container import ServiceContainer

router = APIRouter(tags=["Instance"])

ROOT_MESSAGE = "hello from the instance health sidecar"


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.get("/", response_model=RootResponse)
async def root(services: ServiceContainer = Depends(get_services)) -> RootResponse:
    meta = await services.metadata.get_metadata()
    return RootResponse(
        message=ROOT_MESSAGE,
        instance_id=meta.instance_id,
        availability_zone=meta.availability_zone,
        ready=services.state.is_serving_traffic(),
        timestamp=utc_timestamp(),
    )


@router.get("/meta", response_model=MetadataResponse)
async def metadata(services: ServiceContainer = Depends(get_services)) -> MetadataResponse:
    """Cached instance metadata (handy to correlate with load balancer logs)."""
    meta = await services.metadata.get_metadata()
    return MetadataResponse(
        instance_id=meta.instance_id,
        availability_zone=meta.availability_zone,
        fetched_at=meta.fetched_at_ms,
    )


@router.get("/whoami", response_model=WhoAmIResponse)
async def whoami(services: ServiceContainer = Depends(get_services)) -> WhoAmIResponse:
    meta = await services.metadata.get_metadata()
    return WhoAmIResponse(
        instance_id=meta.instance_id,
        availability_zone=meta.availability_zone,
        pid=os.getpid(),
        ready=services.state.is_serving_traffic(),
        time=utc_timestamp(),
    )
