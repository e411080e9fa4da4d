"""
API Dependencies - service container access for FastAPI endpoints

create_app() stores the ServiceContainer on app.state; endpoints receive it
through Depends(get_services) instead of a module-level global, so tests can
build as many independent apps as they like.

Example:
    @router.get("/health/ready")
    async def readiness(services: ServiceContainer = Depends(get_services)):
        return services.state.is_serving_traffic()
"""

from fastapi import HTTPException, Request, status

from health_sidecar.services.service_container import ServiceContainer


async def get_services(request: Request) -> ServiceContainer:
    """
    Raises:
        HTTPException: 503 if the app was created without a container
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service container not initialized"
        )
    return services
