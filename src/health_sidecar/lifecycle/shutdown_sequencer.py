"""
Shutdown sequencer that takes the process from serving to exited.

Sequence:
    IDLE -> SIGNALED    readiness dropped, grace timer armed
    SIGNALED -> DRAINING    grace elapsed, force-exit timer armed, listener closing
    DRAINING -> STOPPING    listener closed, waiting for in-flight requests
    STOPPING -> EXITED      drain finished first, exit code 0
    STOPPING -> FORCED_EXIT force-exit timer fired first, exit code 1
    DRAINING -> FORCED_EXIT listener could not be closed, exit code 1

Both timers are loop.call_later handles. The drain wait and the force-exit
timer race; whichever finishes first cancels the other, and the exit action
is guarded so it fires exactly once.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from health_sidecar.lifecycle.lifecycle_state import LifecycleState
from health_sidecar.lifecycle.server_protocol import IDrainableServer
from health_sidecar.models.enums import ExitCode, ShutdownStage
from health_sidecar.models.errors import DrainTimeoutError, LifecycleError, ListenerCloseError
from health_sidecar.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)


class ShutdownSequencer:
    """
    One-shot graceful shutdown for a single listening server.

    Example:
        sequencer = ShutdownSequencer(state, drain_timeout=15.0)
        sequencer.attach_server(api_wrapper)

        sequencer.trigger(2.0, reason="SIGTERM")
        code = await sequencer.wait_for_exit()
        sys.exit(code)
    """

    def __init__(
        self,
        state: LifecycleState,
        server: Optional[IDrainableServer] = None,
        drain_timeout: float = 15.0,
        exit_action: Optional[Callable[[ExitCode], None]] = None
    ):
        """
        Args:
            state: Shared lifecycle state
            server: Listener to drain (may be attached later)
            drain_timeout: Seconds from drain start until forced exit
            exit_action: Called once with the final exit code
        """
        self._state = state
        self._server = server
        self._drain_timeout = drain_timeout
        self._exit_action = exit_action

        self._stage = ShutdownStage.IDLE
        self._reason: Optional[str] = None
        self._grace_timer: Optional[asyncio.TimerHandle] = None
        self._grace_deadline: Optional[float] = None
        self._force_exit_timer: Optional[asyncio.TimerHandle] = None
        self._drain_task: Optional[asyncio.Task] = None

        self._exit_code: Optional[ExitCode] = None
        self._exited = asyncio.Event()
        self.failure: Optional[LifecycleError] = None

    def attach_server(self, server: IDrainableServer) -> None:
        self._server = server

    # ----------------------------------------------------------------------
    # PUBLIC API
    # ----------------------------------------------------------------------
    def trigger(self, initial_delay: float, reason: str = "manual") -> bool:
        """
        Start the shutdown sequence.

        Readiness is dropped before this returns; the drain begins after
        `initial_delay` seconds. Repeated calls never start a second
        sequence, but a shorter delay supersedes a pending grace timer.

        Returns:
            True if this call started the sequence, False otherwise.
        """
        loop = asyncio.get_running_loop()

        if not self._state.begin_draining():
            self._supersede_grace_timer(loop, initial_delay, reason)
            return False

        self._reason = reason
        self._stage = ShutdownStage.SIGNALED
        log.info("🛑 Shutdown triggered", reason=reason, grace=f"{initial_delay:.1f}s")

        self._arm_grace_timer(loop, initial_delay)
        return True

    async def wait_for_exit(self) -> ExitCode:
        """Block until the sequence has decided the exit code."""
        await self._exited.wait()
        assert self._exit_code is not None
        return self._exit_code

    def cancel(self) -> None:
        """Drop pending timers and the drain wait (event loop teardown)."""
        if self._grace_timer is not None:
            self._grace_timer.cancel()
            self._grace_timer = None
        self._cancel_force_exit_timer()
        if self._drain_task is not None and not self._drain_task.done():
            self._drain_task.cancel()

    # ----------------------------------------------------------------------
    # PROPERTIES
    # ----------------------------------------------------------------------
    @property
    def stage(self) -> ShutdownStage:
        return self._stage

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    @property
    def exit_code(self) -> Optional[ExitCode]:
        return self._exit_code

    @property
    def is_triggered(self) -> bool:
        return self._stage is not ShutdownStage.IDLE

    # ----------------------------------------------------------------------
    # INTERNAL
    # ----------------------------------------------------------------------
    def _arm_grace_timer(self, loop: asyncio.AbstractEventLoop, delay: float) -> None:
        self._grace_deadline = loop.time() + delay
        self._grace_timer = loop.call_later(delay, self._begin_drain)

    def _supersede_grace_timer(
        self,
        loop: asyncio.AbstractEventLoop,
        delay: float,
        reason: str
    ) -> None:
        if self._stage is not ShutdownStage.SIGNALED or self._grace_timer is None:
            log.debug("Shutdown already in progress, trigger ignored", reason=reason, stage=self._stage.name)
            return

        assert self._grace_deadline is not None
        if loop.time() + delay >= self._grace_deadline:
            log.debug("Shutdown already scheduled sooner, trigger ignored", reason=reason)
            return

        self._grace_timer.cancel()
        log.info("Grace period shortened", reason=reason, grace=f"{delay:.1f}s")
        self._arm_grace_timer(loop, delay)

    def _begin_drain(self) -> None:
        """Grace timer callback: close the listener and start the drain race."""
        self._grace_timer = None
        if self._exit_code is not None:
            return

        loop = asyncio.get_running_loop()
        self._stage = ShutdownStage.DRAINING
        self._state.mark_terminated()
        self._force_exit_timer = loop.call_later(self._drain_timeout, self._on_drain_timeout)

        log.info(
            "Graceful shutdown: refusing new connections",
            reason=self._reason,
            timeout=f"{self._drain_timeout:.1f}s",
        )

        try:
            if self._server is None:
                raise ListenerCloseError("no server attached")
            self._server.close_listeners()
        except Exception as e:
            log.error(f"❌ Error closing listener: {e}", exc_info=True)
            failure = e if isinstance(e, ListenerCloseError) else ListenerCloseError(str(e))
            self._fail(failure)
            return

        self._stage = ShutdownStage.STOPPING
        self._drain_task = loop.create_task(self._await_drain(), name="ShutdownDrain")

    async def _await_drain(self) -> None:
        assert self._server is not None
        try:
            await self._server.wait_drained()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.error(f"❌ Error while draining connections: {e}", exc_info=True)
            self._fail(ListenerCloseError(str(e)))
            return

        if self._exit_code is not None:
            return

        self._cancel_force_exit_timer()
        log.info("✓ Server closed, all connections drained")
        self._exit(ExitCode.SUCCESS, ShutdownStage.EXITED)

    def _on_drain_timeout(self) -> None:
        """Force-exit timer callback."""
        self._force_exit_timer = None
        if self._exit_code is not None:
            return

        self.failure = DrainTimeoutError(self._drain_timeout)
        log.warn(f"⚠️  Forcing exit: {self.failure}")

        if self._drain_task is not None and not self._drain_task.done():
            self._drain_task.cancel()
        self._exit(ExitCode.FAILURE, ShutdownStage.FORCED_EXIT)

    def _fail(self, failure: LifecycleError) -> None:
        self._cancel_force_exit_timer()
        self.failure = failure
        self._exit(ExitCode.FAILURE, ShutdownStage.FORCED_EXIT)

    def _cancel_force_exit_timer(self) -> None:
        if self._force_exit_timer is not None:
            self._force_exit_timer.cancel()
            self._force_exit_timer = None

    def _exit(self, code: ExitCode, stage: ShutdownStage) -> None:
        if self._exit_code is not None:
            return

        self._exit_code = code
        self._stage = stage
        self._exited.set()
        log.info(f"Exit decided: {code.name} ({int(code)})", stage=stage.name)

        if self._exit_action is not None:
            self._exit_action(code)
