"""
Category logger for the sidecar.

Every line names the subsystem that produced it, so a shutdown can be read
top to bottom from the console:

    [14:23:45] SIGNAL    ✓ SIGTERM received → starting graceful shutdown
    [14:23:45] SHUTDOWN  ✓ 🛑 Shutdown triggered
               ├─ reason: SIGTERM
               └─ grace: 2.0s
    [14:23:47] SHUTDOWN  ✓ Graceful shutdown: refusing new connections

Modules bind their category once at import time:

    log = get_logger().for_category(LogCategory.SHUTDOWN)
    log.info("Drain started", timeout="15.0s")
"""

import sys
import traceback
from datetime import datetime
from typing import Iterable, List, NamedTuple, Optional, TextIO

from health_sidecar.models.enums import LogLevel, LogCategory

ANSI_RESET = "\033[0m"
ANSI_DIM = "\033[2m"


class _LevelStyle(NamedTuple):
    rank: int
    symbol: str
    color: str


_LEVELS = {
    LogLevel.DEBUG: _LevelStyle(0, "·", ANSI_DIM),
    LogLevel.INFO: _LevelStyle(1, "✓", "\033[32m"),
    LogLevel.WARN: _LevelStyle(2, "⚠", "\033[33m"),
    LogLevel.ERROR: _LevelStyle(3, "✗", "\033[31m"),
}

_CATEGORY_COLORS = {
    LogCategory.CONFIG: "\033[36m",
    LogCategory.SYSTEM: "\033[97m",
    LogCategory.API: "\033[94m",
    LogCategory.LIFECYCLE: "\033[96m",
    LogCategory.SHUTDOWN: "\033[35m",
    LogCategory.SIGNAL: "\033[95m",
    LogCategory.METADATA: "\033[36m",
}
_DEFAULT_COLOR = "\033[37m"

_CATEGORY_WIDTH = 9
_DETAIL_INDENT = " " * 11


class Logger:
    """
    Level-filtered console logger.

    Keyword arguments passed to a log call become detail lines under the
    message; `exc_info=True` appends the traceback of the exception being
    handled.
    """

    def __init__(
        self,
        min_level: LogLevel = LogLevel.INFO,
        use_colors: bool = True,
        stream: Optional[TextIO] = None
    ):
        """
        Args:
            min_level: Lowest level that is written
            use_colors: Emit ANSI colors (turn off when output is not a terminal)
            stream: Target stream; None means sys.stdout at write time
        """
        self.min_level = min_level
        self.use_colors = use_colors
        self.stream = stream

    def enabled_for(self, level: LogLevel) -> bool:
        return _LEVELS[level].rank >= _LEVELS[self.min_level].rank

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{ANSI_RESET}" if self.use_colors else text

    def _headline(self, category: LogCategory, level: LogLevel, message: str) -> str:
        style = _LEVELS[level]
        stamp = datetime.now().strftime("[%H:%M:%S]")
        name = self._paint(
            category.name.ljust(_CATEGORY_WIDTH),
            _CATEGORY_COLORS.get(category, _DEFAULT_COLOR)
        )
        return f"{stamp} {name} {self._paint(style.symbol, style.color)} {self._paint(message, style.color)}"

    def _detail_lines(self, details: Iterable[str]) -> List[str]:
        items = list(details)
        lines = []
        for index, item in enumerate(items):
            branch = "└─" if index == len(items) - 1 else "├─"
            lines.append(f"{_DETAIL_INDENT}{self._paint(branch, ANSI_DIM)} {item}")
        return lines

    def log(
        self,
        category: LogCategory,
        message: str,
        level: LogLevel = LogLevel.INFO,
        details: Optional[List[str]] = None,
        exc_info: bool = False,
        **fields
    ) -> None:
        """
        Write one message with optional detail lines.

        Args:
            category: Subsystem the message belongs to
            message: Headline text
            level: Severity
            details: Preformatted detail strings, shown before `fields`
            exc_info: Append the active traceback, if any
            **fields: Shown as `key: value` detail lines
        """
        if not self.enabled_for(level):
            return

        lines = [self._headline(category, level, message)]
        lines.extend(self._detail_lines(
            [*(details or []), *(f"{key}: {value}" for key, value in fields.items())]
        ))
        if exc_info and sys.exc_info()[0] is not None:
            lines.append(self._paint(traceback.format_exc().rstrip(), ANSI_DIM))

        print("\n".join(lines), file=self.stream or sys.stdout, flush=True)

    def debug(self, category: LogCategory, message: str, **kw) -> None:
        self.log(category, message, LogLevel.DEBUG, **kw)

    def info(self, category: LogCategory, message: str, **kw) -> None:
        self.log(category, message, LogLevel.INFO, **kw)

    def warn(self, category: LogCategory, message: str, **kw) -> None:
        self.log(category, message, LogLevel.WARN, **kw)

    def error(self, category: LogCategory, message: str, **kw) -> None:
        self.log(category, message, LogLevel.ERROR, **kw)

    def for_category(self, category: LogCategory) -> "BoundLogger":
        return BoundLogger(self, category)


class BoundLogger:
    """Forwards to the shared Logger with a fixed category."""

    def __init__(self, base: Logger, category: LogCategory):
        self._base = base
        self.category = category

    def log(self, message: str, level: LogLevel = LogLevel.INFO, **kw) -> None:
        self._base.log(self.category, message, level, **kw)

    def debug(self, message: str, **kw) -> None:
        self.log(message, LogLevel.DEBUG, **kw)

    def info(self, message: str, **kw) -> None:
        self.log(message, LogLevel.INFO, **kw)

    def warn(self, message: str, **kw) -> None:
        self.log(message, LogLevel.WARN, **kw)

    def error(self, message: str, **kw) -> None:
        self.log(message, LogLevel.ERROR, **kw)


_logger = Logger()


def get_logger() -> Logger:
    return _logger


def parse_level(name: str) -> LogLevel:
    """Map a level name from config/env ("info", "WARNING", ...) to LogLevel."""
    key = name.strip().upper()
    if key == "WARNING":
        key = "WARN"
    try:
        return LogLevel[key]
    except KeyError:
        raise ValueError(f"Unknown log level: {name!r}")


def configure_logger(
    min_level: LogLevel = LogLevel.INFO,
    use_colors: bool = True,
    stream: Optional[TextIO] = None
) -> None:
    """
    Reconfigure the shared logger in place.

    Bound loggers created at import time hold a reference to it, so it is
    never replaced.
    """
    _logger.min_level = min_level
    _logger.use_colors = use_colors
    _logger.stream = stream
