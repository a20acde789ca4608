from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    NOTICE = "NOTICE"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogEntry(BaseModel):
    """One audit record produced by a store operation.

    Notes
    -----
    - Entries are frozen; a snapshot handed out by the store cannot be used
      to rewrite its history.
    - `timestamp` is timezone-aware (UTC) and derived from the store clock.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    level: LogLevel
    message: str


@dataclass
class CacheEntry:
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now
