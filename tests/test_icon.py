"""Unit tests for tray icon artwork and color selection."""

from datetime import datetime, timezone

from claude_status.config import COLOR_RED
from claude_status.icon import ICON_SIZE, create_icon_image, icon_state
from claude_status.shared_state import CoreState, StatusSnapshot, UsageSnapshot, UsageWindow


def _color_for(pct):
    return "#00ff00" if pct < 50 else "#ff0000"


class TestCreateIconImage:
    def test_size_and_mode(self):
        img = create_icon_image(60.0, "#d78700")
        assert img.size == (ICON_SIZE, ICON_SIZE)
        assert img.mode == "RGBA"

    def test_no_data(self):
        img = create_icon_image(None, "#5faf5f", size=32)
        assert img.size == (32, 32)


class TestIconState:
    def test_worse_window_wins(self):
        usage = UsageSnapshot(
            fetched_at=datetime.now(timezone.utc),
            five_hour=UsageWindow(20.0),
            seven_day=UsageWindow(70.0),
        )
        assert icon_state(StatusSnapshot(usage=usage), _color_for) == (70.0, "#ff0000")

    def test_missing_window(self):
        usage = UsageSnapshot(fetched_at=datetime.now(timezone.utc), five_hour=UsageWindow(10.0))
        assert icon_state(StatusSnapshot(usage=usage), _color_for) == (10.0, "#00ff00")

    def test_needs_login(self):
        snap = StatusSnapshot(state=CoreState.CREDENTIALS_ERROR)
        assert icon_state(snap, _color_for) == (None, COLOR_RED)

    def test_no_usage_yet(self):
        assert icon_state(StatusSnapshot(), _color_for) == (None, "#00ff00")
