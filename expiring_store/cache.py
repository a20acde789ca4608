import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from .audit import AuditLog
from .schemas import CacheEntry, LogEntry, LogLevel
from .settings import StoreSettings, settings as default_settings

log = logging.getLogger(__name__)


class _NotFound:
    """Type of the `NOT_FOUND` sentinel returned by `ExpiringStore.get`."""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


class ExpiringStore:
    """In-process key-value store whose entries expire after a TTL.

    Parameters
    ----------
    max_items : Optional[int]
        Soft capacity. When a `set` pushes the item count above it, a full
        sweep of expired entries runs. Missing, non-positive or non-numeric
        values fall back to `settings.default_max_items`.
    settings : Optional[StoreSettings]
        Configuration. Defaults to the module-level `settings`.
    clock : Optional[Callable[[], float]]
        Returns the current time in seconds since the epoch. Defaults to
        `time.time`; tests inject a fake clock.
    logger : Optional[logging.Logger]
        Stdlib logger that mirrors the audit log. Defaults to the logger named
        by `settings.logger_name`, or none when `settings.mirror_to_logging`
        is off.

    Notes
    -----
    - Keys are typed as `str`; values are stored as given and never copied
      or inspected.
    - Expiration is lazy (on `get`) plus a sweep when the capacity threshold
      is crossed. Capacity is a trigger, not a limit: live entries are never
      evicted, so the store can hold more than `max_items`.
    - All public operations share one re-entrant lock.
    - Bad input never raises. It is logged and answered with `False` or
      `NOT_FOUND`.
    """

    def __init__(
        self,
        max_items: Optional[int] = None,
        *,
        settings: Optional[StoreSettings] = None,
        clock: Optional[Callable[[], float]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._ready = False
        self._settings = settings or default_settings
        self._clock = clock or time.time
        mirror = logger
        if mirror is None and self._settings.mirror_to_logging:
            mirror = logging.getLogger(self._settings.logger_name)
        self._lock = threading.RLock()
        self._items: Dict[str, CacheEntry] = {}
        self._audit = AuditLog(self._clock, mirror)

        capacity = _to_int(max_items)
        if capacity is None or capacity <= 0:
            if max_items is not None:
                log.warning("Invalid max_items %r, using default", max_items)
            capacity = self._settings.default_max_items
        self._max_items = capacity

        self._ready = True
        self._log(f"System initialized with max items: {self._max_items}")

    @property
    def max_items(self) -> int:
        return self._max_items

    @property
    def ready(self) -> bool:
        return self._ready

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Insert or replace `value` under `key` for `ttl_seconds`.

        Parameters
        ----------
        key : str
            Non-empty cache key.
        value : Any
            Arbitrary Python object to store.
        ttl_seconds : int
            Time to live. Zero or negative values store an entry that is
            already expired. Values that cannot be read as an integer fall
            back to `settings.default_ttl_seconds`.

        Returns
        -------
        bool
            `True` once stored; `False` if the store is not ready or the key
            is invalid (nothing is changed in that case).
        """

        with self._lock:
            if not self._ready:
                self._log(f"System not ready, failed set for {key}", LogLevel.ERROR)
                return False
            if not _valid_key(key):
                self._log(f"Invalid key {key!r}, failed set", LogLevel.ERROR)
                return False

            ttl = _to_int(ttl_seconds)
            if ttl is None:
                ttl = self._settings.default_ttl_seconds
                self._log(
                    f"Invalid ttl {ttl_seconds!r} for key: {key}, using default {ttl}s",
                    LogLevel.WARNING,
                )

            expires_at = _expiry(self._clock(), ttl)
            self._items[key] = CacheEntry(value=value, expires_at=expires_at)
            self._log(f"Cache set for key: {key}, expires: {self._format_time(expires_at)}")

            if len(self._items) > self._max_items:
                self._log("Max items threshold hit. Running cleanup.", LogLevel.WARNING)
                self.cleanup_expired_items()

            return True

    def get(self, key: str, default: Any = NOT_FOUND) -> Any:
        """Return the value stored for `key` if it is still live.

        Parameters
        ----------
        key : str
            Cache key.
        default : Any
            Returned when the key is missing or expired. Defaults to the
            `NOT_FOUND` sentinel so that a stored `None` stays distinguishable.

        Returns
        -------
        Any
            The stored value (never the internal entry), or `default`.

        Notes
        -----
        - Performs lazy eviction: a stale entry is deleted before returning.
        """

        with self._lock:
            if not _valid_key(key):
                self._log(f"Invalid key {key!r}, failed get", LogLevel.ERROR)
                return default

            entry = self._items.get(key)
            if entry is None:
                self._log(f"Cache miss for key: {key}", LogLevel.NOTICE)
                return default

            if entry.is_expired(self._clock()):
                self._log(f"Cache expired for key: {key}. Deleting.", LogLevel.WARNING)
                self.delete(key)
                return default

            self._log(f"Cache hit for key: {key}")
            return entry.value

    def delete(self, key: str) -> bool:
        """Remove `key`. Returns `True` if it was present, `False` otherwise."""

        with self._lock:
            if not _valid_key(key):
                self._log(f"Invalid key {key!r}, failed delete", LogLevel.ERROR)
                return False
            if self._items.pop(key, None) is None:
                return False
            self._log(f"Item explicitly deleted: {key}")
            return True

    def cleanup_expired_items(self) -> int:
        """Remove every entry that is expired at the start of the sweep.

        Returns
        -------
        int
            Number of entries removed.

        Notes
        -----
        - `now` is read once, so an entry expiring while the sweep runs is
          judged against the same instant as every other entry.
        """

        with self._lock:
            now = self._clock()
            self._log("Starting cleanup of expired items.")
            expired = [key for key, entry in self._items.items() if entry.is_expired(now)]
            for key in expired:
                del self._items[key]
            self._log(f"Cleanup finished. Removed {len(expired)} items.")
            return len(expired)

    def get_audit_log(self) -> Tuple[LogEntry, ...]:
        """Return a read-only snapshot of the audit log, oldest entry first."""

        with self._lock:
            return self._audit.snapshot()

    def _log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        self._audit.append(message, level)

    def _format_time(self, ts: float) -> str:
        try:
            return datetime.fromtimestamp(ts, tz=timezone.utc).strftime(self._settings.timestamp_format)
        except (OverflowError, OSError, ValueError):
            return f"{ts:.0f}"


def _valid_key(key: Any) -> bool:
    return isinstance(key, str) and key != ""


def _expiry(now: float, ttl: int) -> float:
    try:
        return now + ttl
    except OverflowError:
        return float("inf") if ttl > 0 else float("-inf")
