"""
Instance Health Sidecar - API Layer

Thin HTTP handlers over LifecycleState, ShutdownSequencer and MetadataCache.

Structure:
- routes/     : Endpoint handlers
- schemas/    : Pydantic response models
- middleware/ : Shared-secret auth, exception handlers
"""

from health_sidecar.api.main import create_app

__all__ = ["create_app"]
