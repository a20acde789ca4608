import logging
import threading
from typing import Optional

from .cache import ExpiringStore
from .settings import settings

logger = logging.getLogger(__name__)


class Sweeper:
    """Background thread that periodically sweeps expired entries.

    Parameters
    ----------
    store : ExpiringStore
        Store to sweep.
    interval_seconds : Optional[float]
        Pause between sweeps. Defaults to `settings.sweep_interval_seconds`.

    Notes
    -----
    - Optional hygiene only. `ExpiringStore.get` never returns a stale value
      whether or not a sweeper is running.
    - The thread is a daemon and waits on an event, so `stop()` returns
      without sitting out the remaining interval.
    """

    def __init__(self, store: ExpiringStore, interval_seconds: Optional[float] = None):
        if interval_seconds is None:
            interval_seconds = settings.sweep_interval_seconds
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.store = store
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="expiring-store-sweeper", daemon=True)
        self._thread.start()
        logger.info("Sweeper started, interval %.1fs", self.interval_seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("Sweeper stopped")

    def run_once(self) -> int:
        """Sweep now, on the calling thread. Returns the number removed."""
        return self.store.cleanup_expired_items()

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.run_once()
            except Exception:
                logger.exception("Sweep failed")

    def __enter__(self) -> "Sweeper":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
