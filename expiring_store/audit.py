"""
Append-only audit trail for store activity, mirrored to stdlib logging.
The in-memory trail is part of the store contract; the stdlib logger is the
sink that owns retention.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .schemas import LogEntry, LogLevel

NOTICE = 25
logging.addLevelName(NOTICE, LogLevel.NOTICE.value)

_STDLIB_LEVELS: Dict[LogLevel, int] = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.NOTICE: NOTICE,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class AuditLog:
    """Ordered, append-only record of `LogEntry` items.

    Parameters
    ----------
    clock : Callable[[], float]
        Returns the current time in seconds since the epoch.
    logger : Optional[logging.Logger]
        When given, every appended entry is also emitted on this logger at the
        matching stdlib level.

    Notes
    -----
    - The log grows without bound; rotation is left to the stdlib sink.
    - `snapshot()` copies out, so callers never hold the live list.
    """

    def __init__(self, clock: Callable[[], float], logger: Optional[logging.Logger] = None):
        self._clock = clock
        self._logger = logger
        self._entries: List[LogEntry] = []

    def append(self, message: str, level: LogLevel = LogLevel.INFO) -> LogEntry:
        entry = LogEntry(
            timestamp=datetime.fromtimestamp(self._clock(), tz=timezone.utc),
            level=level,
            message=message,
        )
        self._entries.append(entry)
        if self._logger is not None:
            self._logger.log(_STDLIB_LEVELS[level], message)
        return entry

    def snapshot(self) -> Tuple[LogEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class _JsonFormatter(logging.Formatter):
    """One JSON object per record, timestamped in UTC like `LogEntry`."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: int = logging.INFO) -> None:
    """Install one JSON-line stream handler on the root logger.

    Does nothing if the root logger already has a stream handler.
    """

    root = logging.getLogger()
    if any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.setLevel(level)
    root.addHandler(handler)
