"""
Maps external triggers onto the lifecycle state and shutdown sequencer.

OS signals are installed with loop.add_signal_handler, so the handlers run
as ordinary callbacks on the event loop rather than in signal context.
"""

import asyncio
import signal

from health_sidecar.lifecycle.lifecycle_state import LifecycleState
from health_sidecar.lifecycle.shutdown_sequencer import ShutdownSequencer
from health_sidecar.models.config import ShutdownConfig
from health_sidecar.models.enums import LifecyclePhase, ShutdownTrigger
from health_sidecar.models.errors import AlreadyShuttingDownError
from health_sidecar.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SIGNAL)


class SignalTriggerAdapter:
    """
    Entry points for everything that can change readiness or stop the process.

    SIGTERM   readiness off, shutdown after sigterm_delay (default 2s)
    SIGINT    shutdown after sigint_delay (default 0s)
    HTTP      shutdown after http_delay (default 5s); rejected when already
              shutting down, whereas duplicate signals are ignored
    """

    def __init__(
        self,
        state: LifecycleState,
        sequencer: ShutdownSequencer,
        delays: ShutdownConfig
    ):
        self._state = state
        self._sequencer = sequencer
        self._delays = delays

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """
        Install OS signal handlers on the running loop.

        Args:
            loop: Running asyncio event loop
        """
        loop.add_signal_handler(signal.SIGTERM, self.handle_sigterm)
        loop.add_signal_handler(signal.SIGINT, self.handle_sigint)
        log.info("Signal handlers installed (SIGINT, SIGTERM)")

    def remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)

    # ----------------------------------------------------------------------
    # OS SIGNALS
    # ----------------------------------------------------------------------
    def handle_sigterm(self) -> None:
        log.info("SIGTERM received → starting graceful shutdown")
        self._state.force_unready()
        self._sequencer.trigger(self._delays.sigterm_delay, reason=ShutdownTrigger.SIGTERM.name)

    def handle_sigint(self) -> None:
        log.info("SIGINT received → exiting")
        self._sequencer.trigger(self._delays.sigint_delay, reason=ShutdownTrigger.SIGINT.name)

    # ----------------------------------------------------------------------
    # HTTP SIMULATION
    # ----------------------------------------------------------------------
    def request_ready(self, ready: bool) -> bool:
        """
        Raises:
            InvalidTransitionError: shutdown has already begun
        """
        self._state.set_ready(ready)
        log.info(f"Simulated readiness: {ready}")
        return self._state.ready

    def request_shutdown(self) -> float:
        """
        Start a simulated instance termination.

        Returns:
            Grace delay in seconds before the drain starts.

        Raises:
            AlreadyShuttingDownError: shutdown has already begun
        """
        if self._state.phase is not LifecyclePhase.SERVING:
            raise AlreadyShuttingDownError(self._state.phase.name)

        delay = self._delays.http_delay
        self._sequencer.trigger(delay, reason=ShutdownTrigger.HTTP.name)
        return delay
