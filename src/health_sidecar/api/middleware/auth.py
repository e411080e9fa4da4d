"""
Shared-secret authentication for simulation endpoints

If SIM_KEY is configured, a request must carry the same value in one of
(checked in this order):
1. `x-sim-key` header
2. `simKey` query parameter
3. `simKey` field of a JSON object body

With no SIM_KEY configured every request is accepted.

Usage:
    @router.post("/simulate", dependencies=[Depends(require_sim_key)])
    async def simulate(...):
        ...
"""

import hmac
import json
from typing import Optional

from fastapi import Depends, Request

from health_sidecar.api.dependencies import get_services
from health_sidecar.models.errors import AuthError
from health_sidecar.services.service_container import ServiceContainer

SIM_KEY_HEADER = "x-sim-key"
SIM_KEY_PARAM = "simKey"


async def read_json_body(request: Request) -> Optional[object]:
    """Parsed JSON body, or None when empty/not JSON. Starlette caches the body."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return None


async def extract_sim_key(request: Request) -> Optional[str]:
    key = request.headers.get(SIM_KEY_HEADER)
    if key:
        return key

    key = request.query_params.get(SIM_KEY_PARAM)
    if key:
        return key

    body = await read_json_body(request)
    if isinstance(body, dict):
        value = body.get(SIM_KEY_PARAM)
        if isinstance(value, str) and value:
            return value
    return None


async def require_sim_key(
    request: Request,
    services: ServiceContainer = Depends(get_services)
) -> None:
    """
    FastAPI dependency guarding the simulation endpoints.

    Raises:
        AuthError: 401 when a key is configured and the caller's is missing or wrong
    """
    expected = services.config.sim_key
    if not expected:
        return

    supplied = await extract_sim_key(request)
    if supplied is None or not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise AuthError()
