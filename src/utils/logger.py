"""
Structured harness logger

One process-wide Logger writes compact, tree-formatted records; modules
hold a BoundLogger for their category:

    log = get_logger().for_category(LogCategory.TIMER)
    log.debug("Advanced virtual clock", from_ms=0, to_ms=500)

    [14:23:45] TIMER     · Advanced virtual clock
               ├─ from_ms: 0
               └─ to_ms: 500
"""

import sys
from datetime import datetime
from typing import Dict, List, Optional, TextIO

from models.enums import LogLevel, LogCategory

RESET = '\033[0m'
DIM = '\033[2m'

CATEGORY_COLORS: Dict[LogCategory, str] = {
    LogCategory.CONFIG: '\033[36m',
    LogCategory.STATE: '\033[96m',
    LogCategory.SIMULATOR: '\033[93m',
    LogCategory.STYLE: '\033[95m',
    LogCategory.TIMER: '\033[94m',
    LogCategory.HOOK: '\033[92m',
    LogCategory.LIFECYCLE: '\033[97m',
    LogCategory.TASK: '\033[35m',
}

# level → (priority, symbol, color)
LEVEL_STYLES = {
    LogLevel.DEBUG: (0, '·', DIM),
    LogLevel.INFO: (1, '✓', '\033[32m'),
    LogLevel.WARN: (2, '⚠', '\033[33m'),
    LogLevel.ERROR: (3, '✗', '\033[31m'),
}

_DETAIL_INDENT = " " * 11


class Logger:
    """
    Level-filtered writer shared by every BoundLogger

    Attributes:
        min_level: Records below this level are dropped
        use_colors: ANSI colors (off for captured or file output)
        stream: Target stream; None writes to whatever sys.stdout is at call time
    """

    def __init__(
        self,
        min_level: LogLevel = LogLevel.INFO,
        use_colors: bool = True,
        stream: Optional[TextIO] = None
    ):
        self.min_level = min_level
        self.use_colors = use_colors
        self.stream = stream

    def is_enabled(self, level: LogLevel) -> bool:
        return LEVEL_STYLES[level][0] >= LEVEL_STYLES[self.min_level][0]

    def log(
        self,
        category: LogCategory,
        message: str,
        level: LogLevel = LogLevel.INFO,
        details: Optional[List[str]] = None,
        **fields
    ):
        """
        Write one record: a header line, then one tree line per detail.

        Args:
            category: Subsystem the record belongs to
            message: Header text
            level: DEBUG, INFO, WARN or ERROR
            details: Preformatted detail lines
            **fields: Shown as "key: value" details after `details`
        """
        if not self.is_enabled(level):
            return

        _, symbol, level_color = LEVEL_STYLES[level]
        header = " ".join((
            datetime.now().strftime('[%H:%M:%S]'),
            self._paint(category.name.ljust(9), CATEGORY_COLORS.get(category, '')),
            self._paint(symbol, level_color),
            self._paint(message, level_color),
        ))

        lines = [header]
        lines.extend(self._render_details(list(details or []) + [f"{k}: {v}" for k, v in fields.items()]))
        print("\n".join(lines), file=self.stream or sys.stdout)

    def _render_details(self, details: List[str]) -> List[str]:
        rendered = []
        for i, detail in enumerate(details):
            branch = "└─" if i == len(details) - 1 else "├─"
            rendered.append(f"{_DETAIL_INDENT}{self._paint(branch, DIM)} {detail}")
        return rendered

    def _paint(self, text: str, color: str) -> str:
        if not self.use_colors or not color:
            return text
        return f"{color}{text}{RESET}"

    def debug(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.DEBUG, **kw)
    def info(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.INFO, **kw)
    def warn(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.WARN, **kw)
    def error(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.ERROR, **kw)

    def for_category(self, category: LogCategory) -> 'BoundLogger':
        return BoundLogger(self, category)


class BoundLogger:
    """Category-bound view of the shared Logger"""

    def __init__(self, base: Logger, category: LogCategory):
        self._base = base
        self._category = category

    def log(self, message: str, level: LogLevel = LogLevel.INFO, category: Optional[LogCategory] = None, **kw):
        self._base.log(category or self._category, message, level, **kw)

    def debug(self, message: str, **kw): self.log(message, LogLevel.DEBUG, **kw)
    def info(self, message: str, **kw): self.log(message, LogLevel.INFO, **kw)
    def warn(self, message: str, **kw): self.log(message, LogLevel.WARN, **kw)
    def error(self, message: str, **kw): self.log(message, LogLevel.ERROR, **kw)

    def with_category(self, category: LogCategory) -> 'BoundLogger':
        return BoundLogger(self._base, category)


_logger = Logger()


def get_logger() -> Logger:
    return _logger


def get_category_logger(category: LogCategory) -> BoundLogger:
    return _logger.for_category(category)


def configure_logger(min_level: LogLevel = LogLevel.INFO, use_colors: bool = True):
    """
    Reconfigure the singleton in place.

    Bound loggers created at import time keep pointing at the same instance.
    """
    _logger.min_level = min_level
    _logger.use_colors = use_colors
