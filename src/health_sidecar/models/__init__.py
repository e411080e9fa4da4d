from .config import SidecarConfig, MetadataConfig, ShutdownConfig
from .enums import (
    LifecyclePhase,
    ShutdownStage,
    ShutdownTrigger,
    ExitCode,
    LogLevel,
    LogCategory,
)
from .metadata import InstanceMetadata, UNKNOWN

__all__ = [
    "SidecarConfig",
    "MetadataConfig",
    "ShutdownConfig",
    "LifecyclePhase",
    "ShutdownStage",
    "ShutdownTrigger",
    "ExitCode",
    "LogLevel",
    "LogCategory",
    "InstanceMetadata",
    "UNKNOWN",
]
