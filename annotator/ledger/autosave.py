"""
Periodic autosave for a ledger.

Runs in a background daemon thread owned by whoever starts it (the HTTP
app's lifespan, in practice). Every `interval` seconds it saves the ledger
if answers arrived since the last save.

Save failures are logged and NOT fatal: the in-memory ledger is still
valid and the next tick tries again.
"""

import logging
import threading
from typing import Optional

from annotator.persistence import PersistenceError
from .ledger import AnnotationLedger

logger = logging.getLogger(__name__)

# Default autosave interval
AUTOSAVE_INTERVAL_SECONDS = 300.0


class PeriodicSaver:
    """
    Background thread calling ledger.save_if_dirty() on a fixed interval.

    Usage:
        saver = PeriodicSaver(ledger, interval=60)
        saver.start()
        ...
        saver.stop()
    """

    def __init__(self, ledger: AnnotationLedger, interval: float = AUTOSAVE_INTERVAL_SECONDS):
        """
        Initialize the saver.

        Args:
            ledger: Ledger to save. Must have a path configured.
            interval: Seconds between dirty checks. Must be > 0.
        """
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        if ledger.path is None:
            raise ValueError("ledger has no path to save to")

        self.ledger = ledger
        self.interval = interval

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._saves = 0
        self._failures = 0

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    @property
    def saves(self) -> int:
        """Number of saves performed by this saver."""
        with self._lock:
            return self._saves

    @property
    def failures(self) -> int:
        with self._lock:
            return self._failures

    def tick(self) -> bool:
        """
        Run one dirty check, saving if needed.

        Returns:
            True if a save was performed
        """
        try:
            saved = self.ledger.save_if_dirty()
        except PersistenceError as e:
            with self._lock:
                self._failures += 1
            logger.error(f"[Autosave] Save failed, will retry next tick: {e}")
            return False

        if saved:
            with self._lock:
                self._saves += 1
        return saved

    def _run(self) -> None:
        # Event.wait returns True once stop() is called
        while not self._stop.wait(self.interval):
            self.tick()

    def start(self) -> None:
        """Start the background thread. No-op if already running."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._run,
                daemon=True,
                name="annotator-autosave",
            )
            self._thread.start()
        logger.info(f"[Autosave] Saving {self.ledger.path} every {self.interval:g}s when dirty")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the background thread. Does not save."""
        self._stop.set()
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is not None:
            thread.join(timeout=timeout)
            logger.info("[Autosave] Stopped")
