"""
Simulation endpoints - exercise infrastructure reactions on demand

1) Make the instance unready without stopping it:
   POST /simulate {"ready": false}
   -> /health/ready returns 503, the target group marks it unhealthy

2) Make it ready again:
   POST /simulate {"ready": true}

3) Simulate instance termination:
   POST /simulate/shutdown
   -> readiness drops immediately, the listener closes after the grace
      period, and the process exits once in-flight requests finish

Both endpoints require the shared secret when SIM_KEY is set.
"""

from fastapi import APIRouter, Depends, Request

from health_sidecar.api.dependencies import get_services
from health_sidecar.api.middleware.auth import read_json_body, require_sim_key
from health_sidecar.api.schemas.health import SimulateReadyResponse, SimulateShutdownResponse
from health_sidecar.models.errors import InvalidPayloadError
from health_sidecar.services.service_container import ServiceContainer

router = APIRouter(
    prefix="/simulate",
    tags=["Simulation"],
    dependencies=[Depends(require_sim_key)],
)


@router.post("", response_model=SimulateReadyResponse)
async def simulate_ready(
    request: Request,
    services: ServiceContainer = Depends(get_services)
) -> SimulateReadyResponse:
    """
    **Errors:**
    - 400: `ready` missing or not a boolean, or shutdown already started
    - 401: simulation key missing or invalid
    """
    body = await read_json_body(request)
    ready = body.get("ready") if isinstance(body, dict) else None
    if not isinstance(ready, bool):
        raise InvalidPayloadError(type(ready).__name__ if ready is not None else None)

    return SimulateReadyResponse(ready=services.triggers.request_ready(ready))


@router.post("/shutdown", response_model=SimulateShutdownResponse)
async def simulate_shutdown(
    services: ServiceContainer = Depends(get_services)
) -> SimulateShutdownResponse:
    """
    Responds before the grace period elapses; the shutdown runs in the background.

    **Errors:**
    - 400: shutdown already in progress
    - 401: simulation key missing or invalid
    """
    delay = services.triggers.request_shutdown()
    return SimulateShutdownResponse(
        shutting_down=True,
        note=f"server will attempt graceful shutdown in {delay:g}s",
    )
