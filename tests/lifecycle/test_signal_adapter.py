"""
Trigger adapter: OS signals and simulated HTTP triggers.
"""

import asyncio
import os
import signal
from unittest.mock import MagicMock

import pytest

from conftest import ExitRecorder, FakeServer
from health_sidecar.lifecycle.lifecycle_state import LifecycleState
from health_sidecar.lifecycle.shutdown_sequencer import ShutdownSequencer
from health_sidecar.lifecycle.signal_adapter import SignalTriggerAdapter
from health_sidecar.models.config import ShutdownConfig
from health_sidecar.models.enums import ExitCode, LifecyclePhase
from health_sidecar.models.errors import AlreadyShuttingDownError, InvalidTransitionError


FAST_DELAYS = ShutdownConfig(http_delay=0.3, sigterm_delay=0.2, sigint_delay=0.0, drain_timeout=0.5)


@pytest.fixture
def adapter(state, sequencer):
    return SignalTriggerAdapter(state, sequencer, FAST_DELAYS)


@pytest.mark.asyncio
async def test_sigterm_drops_readiness_then_drains(adapter, state, sequencer, fake_server):
    adapter.handle_sigterm()

    assert state.ready is False
    assert state.phase is LifecyclePhase.DRAINING
    assert sequencer.reason == "SIGTERM"

    await asyncio.sleep(0.1)
    assert fake_server.close_calls == 0

    await asyncio.sleep(0.2)
    assert fake_server.close_calls == 1


@pytest.mark.asyncio
async def test_duplicate_sigterm_is_ignored(adapter, sequencer, fake_server):
    adapter.handle_sigterm()
    adapter.handle_sigterm()

    await asyncio.sleep(0.3)
    fake_server.drained.set()

    assert await asyncio.wait_for(sequencer.wait_for_exit(), 2.0) is ExitCode.SUCCESS
    assert fake_server.close_calls == 1


@pytest.mark.asyncio
async def test_sigint_exits_without_grace(adapter, sequencer, fake_server):
    adapter.handle_sigint()
    await asyncio.sleep(0.05)

    assert fake_server.close_calls == 1
    assert sequencer.reason == "SIGINT"


@pytest.mark.asyncio
async def test_sigint_during_sigterm_grace_shortens_it(adapter, sequencer, fake_server):
    adapter.handle_sigterm()
    adapter.handle_sigint()

    await asyncio.sleep(0.05)

    assert fake_server.close_calls == 1
    assert sequencer.reason == "SIGTERM"


@pytest.mark.asyncio
async def test_request_shutdown_returns_http_delay(adapter, state, sequencer):
    delay = adapter.request_shutdown()

    assert delay == pytest.approx(0.3)
    assert state.ready is False
    assert sequencer.reason == "HTTP"


@pytest.mark.asyncio
async def test_request_shutdown_twice_is_rejected(adapter, fake_server):
    adapter.request_shutdown()

    with pytest.raises(AlreadyShuttingDownError) as exc_info:
        adapter.request_shutdown()
    assert exc_info.value.details == {"phase": "DRAINING"}

    await asyncio.sleep(0.4)
    assert fake_server.close_calls == 1


@pytest.mark.asyncio
async def test_request_shutdown_after_sigterm_is_rejected(adapter):
    adapter.handle_sigterm()

    with pytest.raises(AlreadyShuttingDownError):
        adapter.request_shutdown()


@pytest.mark.asyncio
async def test_request_ready_toggles_while_serving(adapter, state):
    assert adapter.request_ready(False) is False
    assert state.is_serving_traffic() is False

    assert adapter.request_ready(True) is True
    assert state.is_serving_traffic() is True


@pytest.mark.asyncio
async def test_request_ready_after_shutdown_is_invalid(adapter, state):
    adapter.request_shutdown()

    with pytest.raises(InvalidTransitionError):
        adapter.request_ready(True)
    assert state.ready is False


def test_setup_signal_handlers_registers_both_signals(state):
    sequencer = MagicMock()
    adapter = SignalTriggerAdapter(state, sequencer, FAST_DELAYS)
    loop = MagicMock()

    adapter.setup_signal_handlers(loop)
    adapter.remove_signal_handlers(loop)

    loop.add_signal_handler.assert_any_call(signal.SIGTERM, adapter.handle_sigterm)
    loop.add_signal_handler.assert_any_call(signal.SIGINT, adapter.handle_sigint)
    assert loop.add_signal_handler.call_count == 2
    loop.remove_signal_handler.assert_any_call(signal.SIGTERM)
    loop.remove_signal_handler.assert_any_call(signal.SIGINT)


def test_sigterm_handler_uses_configured_delay(state):
    sequencer = MagicMock()
    adapter = SignalTriggerAdapter(state, sequencer, ShutdownConfig())

    adapter.handle_sigterm()
    adapter.handle_sigint()

    assert sequencer.trigger.call_args_list[0].args == (2.0,)
    assert sequencer.trigger.call_args_list[0].kwargs == {"reason": "SIGTERM"}
    assert sequencer.trigger.call_args_list[1].args == (0.0,)
    assert sequencer.trigger.call_args_list[1].kwargs == {"reason": "SIGINT"}


@pytest.mark.asyncio
@pytest.mark.skipif(not hasattr(signal, "SIGTERM") or os.name != "posix", reason="POSIX signals only")
async def test_real_sigterm_reaches_sequencer():
    state = LifecycleState()
    server = FakeServer()
    recorder = ExitRecorder()
    sequencer = ShutdownSequencer(state, server, drain_timeout=0.5, exit_action=recorder)
    adapter = SignalTriggerAdapter(state, sequencer, FAST_DELAYS)
    loop = asyncio.get_running_loop()

    adapter.setup_signal_handlers(loop)
    try:
        os.kill(os.getpid(), signal.SIGTERM)
        await asyncio.sleep(0.05)

        assert state.ready is False
        assert sequencer.is_triggered

        await asyncio.sleep(0.25)
        server.drained.set()
        assert await asyncio.wait_for(sequencer.wait_for_exit(), 2.0) is ExitCode.SUCCESS
        assert recorder.codes == [ExitCode.SUCCESS]
    finally:
        adapter.remove_signal_handlers(loop)
        sequencer.cancel()
