"""Main application coordinator: wires all components together."""

import logging

from .core import StatusCore
from .errors import ResultCode
from .tray_icon import TrayIcon
from .usage_monitor import UsageMonitor
from . import settings

log = logging.getLogger(__name__)


class App:
    """Top-level coordinator for the tray app."""

    def __init__(self) -> None:
        self._core: StatusCore | None = None
        self._tray: TrayIcon | None = None
        self._monitor: UsageMonitor | None = None

    def run(self) -> None:
        """Start all components and block in the tray loop."""
        log.info("Starting Claude Status")

        self._core = StatusCore(config=settings.to_config())

        code = self._core.load_credentials()
        if code is not ResultCode.OK:
            log.warning("No usable credentials yet (%s), waiting for login", code.name)

        if self._core.start_monitor() is not ResultCode.OK:
            log.warning("Credentials watcher not running; use Reconnect after logging in")

        self._tray = TrayIcon(
            self._core,
            on_refresh=self._handle_refresh,
            on_exit=self._shutdown,
        )

        # Background timer; its first tick fetches immediately
        self._monitor = UsageMonitor(self._core)
        self._monitor.start()

        log.info("All components started, entering tray loop")
        self._tray.run()

    def _handle_refresh(self) -> None:
        if self._monitor:
            self._monitor.poke()

    def _shutdown(self) -> None:
        """Clean shutdown of all components."""
        log.info("Shutting down...")
        if self._monitor:
            self._monitor.stop()
        if self._core:
            self._core.close()
        if self._tray:
            self._tray.stop()
        log.info("Shutdown complete")
