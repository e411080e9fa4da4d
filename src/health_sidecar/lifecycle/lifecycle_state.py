"""
Lifecycle state
---------------

Process-wide readiness and phase, consulted by every probe handler and
signal handler. One instance is created at startup and shared by reference.

Phase only moves forward: SERVING -> DRAINING -> TERMINATED. While SERVING,
readiness can be toggled freely (simulated unhealthy instance). Once the
phase has advanced, readiness is false and stays false.
"""

from typing import Any, Dict

from health_sidecar.models.enums import LifecyclePhase
from health_sidecar.models.errors import InvalidTransitionError
from health_sidecar.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class LifecycleState:
    """
    Readiness + phase state machine.

    Only the shutdown sequencer calls begin_draining() and mark_terminated();
    handlers read state or call set_ready().
    """

    def __init__(self) -> None:
        self._ready = True
        self._phase = LifecyclePhase.SERVING

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def phase(self) -> LifecyclePhase:
        return self._phase

    def is_serving_traffic(self) -> bool:
        """Readiness probe: should the load balancer route new requests here?"""
        return self._ready and self._phase is LifecyclePhase.SERVING

    def is_alive(self) -> bool:
        """Liveness probe: false only once the process has committed to exit."""
        return self._phase is not LifecyclePhase.TERMINATED

    def set_ready(self, ready: bool) -> None:
        """
        Toggle readiness while SERVING.

        Raises:
            InvalidTransitionError: phase has already advanced past SERVING
        """
        if self._phase is not LifecyclePhase.SERVING:
            raise InvalidTransitionError(self._phase.name)

        if ready != self._ready:
            log.info(f"Readiness set to {ready}")
        self._ready = ready

    def force_unready(self) -> None:
        """Drop readiness regardless of phase. Never fails."""
        if self._ready:
            log.info("Readiness forced to False")
        self._ready = False

    def begin_draining(self) -> bool:
        """
        SERVING -> DRAINING, exactly once.

        Returns:
            True if this call started draining, False if shutdown was
            already in progress.
        """
        if self._phase is not LifecyclePhase.SERVING:
            return False

        self._ready = False
        self._phase = LifecyclePhase.DRAINING
        log.info("Phase SERVING → DRAINING (readiness off)")
        return True

    def mark_terminated(self) -> None:
        """DRAINING -> TERMINATED. Idempotent once terminated."""
        if self._phase is LifecyclePhase.TERMINATED:
            return
        if self._phase is LifecyclePhase.SERVING:
            raise InvalidTransitionError(self._phase.name)

        self._ready = False
        self._phase = LifecyclePhase.TERMINATED
        log.info("Phase DRAINING → TERMINATED")

    def snapshot(self) -> Dict[str, Any]:
        return {"ready": self._ready, "phase": self._phase.name}

    def __repr__(self) -> str:
        return f"LifecycleState(ready={self._ready}, phase={self._phase.name})"
