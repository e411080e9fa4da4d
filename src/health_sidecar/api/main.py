"""
FastAPI Application Factory

Assembles the HTTP surface of the sidecar:
- probe routes (/health/live, /health/ready)
- instance info routes (/, /meta, /whoami)
- simulation routes (/simulate, /simulate/shutdown)
- exception handlers translating domain errors into JSON responses

The ServiceContainer is attached to app.state so the same factory serves
main_asyncio.py and the tests, each with its own state.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from health_sidecar import __version__
from health_sidecar.api.middleware.error_handler import register_exception_handlers
from health_sidecar.api.routes import health, instance, simulate
from health_sidecar.services.service_container import ServiceContainer
from health_sidecar.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


def create_app(
    services: ServiceContainer,
    title: str = "Instance Health Sidecar",
    docs_enabled: bool = False
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        services: Wired ServiceContainer shared with the signal handlers
        title: API title (shown in docs)
        docs_enabled: Expose /docs and /openapi.json

    Returns:
        Configured FastAPI application ready to run
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("FastAPI app starting up")
        yield
        log.info("FastAPI app shutting down", phase=services.state.phase.name)

    app = FastAPI(
        title=title,
        version=__version__,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.services = services

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(instance.router)
    app.include_router(simulate.router)

    log.debug(
        "Routes registered",
        probes="/health/live, /health/ready",
        info="/, /meta, /whoami",
        simulate="/simulate, /simulate/shutdown",
        auth="enabled" if services.config.auth_enabled else "disabled",
    )
    return app
