"""Host timer: a background thread that ticks the core at the configured interval.

Each tick first polls the credentials watcher (so a token refreshed by
Claude Code is picked up, and a credentials error clears), then asks the
core for a refresh. The core coalesces ticks into one in-flight cycle.
"""

import logging
import threading

from .core import StatusCore

log = logging.getLogger(__name__)


class UsageMonitor:
    """Background daemon thread that drives StatusCore.refresh()."""

    def __init__(self, core: StatusCore) -> None:
        self._core = core
        self._stop_event = threading.Event()
        self._poke = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background timer thread."""
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="UsageMonitor")
        self._thread.start()
        log.info("Usage monitor started (every %ds)", self._core.config.update_interval)

    def stop(self) -> None:
        """Signal the monitor to stop and wait for it."""
        self._stop_event.set()
        self._poke.set()  # Unblock any wait
        if self._thread:
            self._thread.join(timeout=5)
        log.info("Usage monitor stopped")

    def poke(self) -> None:
        """Force an immediate tick (Refresh menu item)."""
        self._poke.set()

    def tick(self) -> bool:
        """One timer tick. Returns whether a refresh cycle was started."""
        self._core.check_credentials()
        return self._core.refresh()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            # Cleared before the tick so a poke during it is not lost
            self._poke.clear()
            try:
                self.tick()
            except Exception:
                log.exception("Monitor tick failed")

            if self._stop_event.is_set():
                break
            # Re-read interval each cycle so setter changes apply
            self._poke.wait(self._core.config.update_interval)
