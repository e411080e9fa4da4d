"""Service Container - everything the HTTP surface and signal handlers share"""

from dataclasses import dataclass

from health_sidecar.lifecycle.lifecycle_state import LifecycleState
from health_sidecar.lifecycle.shutdown_sequencer import ShutdownSequencer
from health_sidecar.lifecycle.signal_adapter import SignalTriggerAdapter
from health_sidecar.models.config import SidecarConfig
from health_sidecar.services.metadata_service import MetadataCache


@dataclass
class ServiceContainer:
    """
    Dependency container created once in main_asyncio.main().

    - config: resolved SidecarConfig
    - state: the single LifecycleState instance
    - sequencer: the single ShutdownSequencer
    - triggers: signal/HTTP trigger adapter
    - metadata: instance metadata cache
    """

    config: SidecarConfig
    state: LifecycleState
    sequencer: ShutdownSequencer
    triggers: SignalTriggerAdapter
    metadata: MetadataCache

    @classmethod
    def build(cls, config: SidecarConfig, metadata: MetadataCache) -> "ServiceContainer":
        """Wire state, sequencer and trigger adapter from config."""
        state = LifecycleState()
        sequencer = ShutdownSequencer(state, drain_timeout=config.shutdown.drain_timeout)
        triggers = SignalTriggerAdapter(state, sequencer, config.shutdown)
        return cls(
            config=config,
            state=state,
            sequencer=sequencer,
            triggers=triggers,
            metadata=metadata,
        )
