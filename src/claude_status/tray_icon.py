"""System tray icon: the display sink for the core's snapshots."""

import logging
import threading

import pystray

from .config import APP_NAME, APP_SLUG
from .core import StatusCore
from .icon import create_icon_image, icon_state
from .shared_state import StatusSnapshot
from .utils import build_tooltip, pct_str

log = logging.getLogger(__name__)


class TrayIcon:
    """System tray icon powered by pystray."""

    def __init__(self, core: StatusCore, on_refresh=None, on_exit=None) -> None:
        self._core = core
        self._on_refresh = on_refresh
        self._on_exit = on_exit
        self._icon: pystray.Icon | None = None
        self._current: tuple[str, str] = ("", "")

        # Register for state updates
        core.shared_state.on_change(self._on_data_change)

    def run(self) -> None:
        """Show the icon; blocks until stop() (pystray wants the main thread)."""
        menu = pystray.Menu(
            pystray.MenuItem("Refresh", self._handle_refresh, default=True),
            pystray.MenuItem("Reconnect", self._handle_reconnect),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Exit", self._handle_exit),
        )
        pct, color = icon_state(self._core.snapshot(), self._core.color_for)
        self._current = (pct_str(pct), color)
        self._icon = pystray.Icon(
            name=APP_SLUG,
            icon=create_icon_image(pct, color),
            title=f"{APP_NAME}: Loading...",
            menu=menu,
        )
        log.info("Tray icon started")
        self._icon.run()

    def stop(self) -> None:
        if self._icon:
            self._icon.stop()
        log.info("Tray icon stopped")

    def _on_data_change(self, data: StatusSnapshot) -> None:
        """Update icon and tooltip when a new snapshot is published."""
        if not self._icon:
            return
        pct, color = icon_state(data, self._core.color_for)
        try:
            self._icon.title = build_tooltip(data)
            # Redraw only when the visible percentage or color changes
            key = (pct_str(pct), color)
            if key != self._current:
                self._current = key
                self._icon.icon = create_icon_image(pct, color)
        except Exception as exc:
            log.debug("Tray update error: %s", exc)

    def _handle_refresh(self, icon=None, item=None) -> None:
        if self._on_refresh:
            self._on_refresh()

    def _handle_reconnect(self, icon=None, item=None) -> None:
        # Menu callbacks run on pystray's thread; keep file and network work off it
        threading.Thread(target=self._core.reconnect, daemon=True, name="Reconnect").start()

    def _handle_exit(self, icon=None, item=None) -> None:
        if self._on_exit:
            self._on_exit()
