"""
Error taxonomy

DomainError subclasses are raised by the lifecycle layer and translated to
HTTP responses by api.middleware.error_handler. LifecycleError subclasses are
fatal shutdown failures; they never reach an HTTP client and always end with
a non-zero exit code.
"""

from typing import Optional


class DomainError(Exception):
    """Base class for errors surfaced to HTTP callers"""
    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
        status_code: int = 400
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        super().__init__(message)


class AuthError(DomainError):
    """Shared secret missing or wrong"""
    def __init__(self):
        super().__init__(
            code="sim-key-missing-or-invalid",
            message="Simulation key is missing or invalid",
            status_code=401
        )


class InvalidTransitionError(DomainError):
    """Readiness change attempted after the phase left SERVING"""
    def __init__(self, phase: str):
        super().__init__(
            code="invalid_transition",
            message=f"Readiness cannot change while {phase}",
            details={"phase": phase},
            status_code=400
        )


class AlreadyShuttingDownError(DomainError):
    """Shutdown requested twice over HTTP"""
    def __init__(self, phase: str):
        super().__init__(
            code="already_shutting_down",
            message="Shutdown is already in progress",
            details={"phase": phase},
            status_code=400
        )


class InvalidPayloadError(DomainError):
    """Request body is missing the `ready` boolean"""
    def __init__(self, received: Optional[str] = None):
        super().__init__(
            code="ready_boolean_required",
            message="`ready` boolean is required in body",
            details={"received": received} if received else None,
            status_code=400
        )


class LifecycleError(Exception):
    """Base class for fatal shutdown failures"""


class ListenerCloseError(LifecycleError):
    """The listening socket could not be closed"""


class DrainTimeoutError(LifecycleError):
    """In-flight requests did not finish before the force-exit timer"""
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Drain did not complete within {timeout:.1f}s")


class MetadataLookupFailure(Exception):
    """A single metadata lookup failed; always recovered to a sentinel"""
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ConfigError(Exception):
    """Configuration value could not be parsed"""
