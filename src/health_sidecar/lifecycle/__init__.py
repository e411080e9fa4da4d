"""
Lifecycle subsystem
-------------------

Exports the public API for:
- readiness / phase state
- the graceful shutdown sequence
- OS signal and HTTP trigger mapping
- the uvicorn listener wrapper

External code should import from:
    from health_sidecar.lifecycle import LifecycleState, ShutdownSequencer
"""

from .lifecycle_state import LifecycleState
from .server_protocol import IDrainableServer
from .shutdown_sequencer import ShutdownSequencer
from .signal_adapter import SignalTriggerAdapter
from .api_server_wrapper import APIServerWrapper

__all__ = [
    "LifecycleState",
    "IDrainableServer",
    "ShutdownSequencer",
    "SignalTriggerAdapter",
    "APIServerWrapper",
]
