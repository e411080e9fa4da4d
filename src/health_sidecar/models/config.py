"""
Configuration models

Durations are seconds. Defaults match the behaviour expected by load
balancers watching the readiness probe: 5s grace for operator-triggered
shutdown, 2s after SIGTERM (the orchestrator already waited), none after
SIGINT, and 15s before a stuck drain is abandoned.
"""

from dataclasses import dataclass, field

DEFAULT_METADATA_BASE = "http://169.254.169.254/latest/meta-data"


@dataclass
class MetadataConfig:
    base_url: str = DEFAULT_METADATA_BASE
    ttl: float = 30.0
    timeout: float = 1.0


@dataclass
class ShutdownConfig:
    http_delay: float = 5.0
    sigterm_delay: float = 2.0
    sigint_delay: float = 0.0
    drain_timeout: float = 15.0


@dataclass
class SidecarConfig:
    host: str = "0.0.0.0"
    port: int = 80
    sim_key: str = ""
    log_level: str = "INFO"
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    shutdown: ShutdownConfig = field(default_factory=ShutdownConfig)

    @property
    def auth_enabled(self) -> bool:
        return bool(self.sim_key)
