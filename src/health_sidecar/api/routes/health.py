"""
Probe endpoints

/health/live   liveness: 200 until the process has committed to exit
/health/ready  readiness: 200 only while SERVING and ready
"""

from fastapi import APIRouter, Depends, Response, status

from health_sidecar.api.dependencies import get_services
from health_sidecar.api.schemas.health import LivenessResponse, ReadinessResponse
from health_sidecar.services.service_container import ServiceContainer

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/live",
    response_model=LivenessResponse,
    response_model_exclude_none=True,
    responses={500: {"model": LivenessResponse}},
)
async def liveness(
    response: Response,
    services: ServiceContainer = Depends(get_services)
) -> LivenessResponse:
    """Liveness probe — is the process alive enough not to be restarted?"""
    if services.state.is_alive():
        return LivenessResponse(live=True)

    response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return LivenessResponse(live=False, reason="shutting_down")


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness(
    response: Response,
    services: ServiceContainer = Depends(get_services)
) -> ReadinessResponse:
    """Readiness probe — should the load balancer send traffic here?"""
    if services.state.is_serving_traffic():
        return ReadinessResponse(ready=True)

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(ready=False)
