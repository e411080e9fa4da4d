"""
Enums for the health sidecar lifecycle state machine
"""

from enum import Enum, IntEnum, auto


class LifecyclePhase(Enum):
    """
    Externally observable phase of the process.

    SERVING: normal operation, readiness may toggle freely
    DRAINING: shutdown committed, readiness forced false
    TERMINATED: drain started, process is about to exit
    """
    SERVING = auto()
    DRAINING = auto()
    TERMINATED = auto()


class ShutdownStage(Enum):
    """Internal stages of the shutdown sequence"""
    IDLE = auto()         # No shutdown requested
    SIGNALED = auto()     # Readiness dropped, grace timer armed
    DRAINING = auto()     # Grace elapsed, closing the listener
    STOPPING = auto()     # Listener closed, waiting for in-flight requests
    EXITED = auto()       # Drain completed, exit code 0
    FORCED_EXIT = auto()  # Drain timeout or listener close failure, exit code 1


class ExitCode(IntEnum):
    """Process exit status"""
    SUCCESS = 0
    FAILURE = 1


class ShutdownTrigger(Enum):
    """What asked for the shutdown"""
    SIGTERM = auto()
    SIGINT = auto()
    HTTP = auto()


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()      # Configuration loading, validation
    SYSTEM = auto()      # Startup, exit, fatal errors
    API = auto()         # HTTP surface
    LIFECYCLE = auto()   # Readiness / phase changes
    SHUTDOWN = auto()    # Shutdown sequence, drain, force-exit
    SIGNAL = auto()      # OS signals and simulation triggers
    METADATA = auto()    # Instance metadata lookups

    GENERAL = auto()     # Default general category
