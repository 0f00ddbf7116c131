"""Persistent user preferences stored in ~/.config/claude-status/settings.json.

SECURITY MODEL:
- This file stores ONLY display preferences and the credentials file PATH.
- NO credentials, tokens, or authentication data are ever written to disk.
- File permissions are restricted to the owning user on creation.

The core never reads this file; the host loads it and pushes a Config in.
"""

import json
import logging
import os
import stat
from pathlib import Path

from .config import (
    APP_SLUG,
    DEFAULT_CREDENTIALS_PATH,
    DEFAULT_ORANGE_THRESHOLD,
    DEFAULT_RED_THRESHOLD,
    DEFAULT_UPDATE_INTERVAL,
    DEFAULT_YELLOW_THRESHOLD,
    MAX_THRESHOLD,
    MAX_UPDATE_INTERVAL,
    MIN_THRESHOLD,
    MIN_UPDATE_INTERVAL,
    Config,
    clamp,
)
from .credentials import validate_credentials

log = logging.getLogger(__name__)

DEFAULTS = {
    "update_interval": DEFAULT_UPDATE_INTERVAL,    # seconds between API polls
    "yellow_threshold": DEFAULT_YELLOW_THRESHOLD,
    "orange_threshold": DEFAULT_ORANGE_THRESHOLD,
    "red_threshold": DEFAULT_RED_THRESHOLD,
    "credentials_path": DEFAULT_CREDENTIALS_PATH,
}

_RANGES = {
    "update_interval": (MIN_UPDATE_INTERVAL, MAX_UPDATE_INTERVAL),
    "yellow_threshold": (MIN_THRESHOLD, MAX_THRESHOLD),
    "orange_threshold": (MIN_THRESHOLD, MAX_THRESHOLD),
    "red_threshold": (MIN_THRESHOLD, MAX_THRESHOLD),
}


def settings_file() -> Path:
    env = os.environ.get("CLAUDE_STATUS_SETTINGS")
    if env:
        return Path(env)
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / APP_SLUG / "settings.json"


def _lock_file_permissions(path: Path) -> None:
    """Restrict file to owner-only read/write."""
    try:
        os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)
    except OSError:
        pass  # Best effort on filesystems without POSIX modes


def _coerce(key: str, value):
    """Return a cleaned value for key, or None if it is unusable."""
    if key in _RANGES:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        low, high = _RANGES[key]
        return clamp(value, low, high)
    if key == "credentials_path":
        return value if isinstance(value, str) and value else None
    return None


def load() -> dict:
    """Load settings from disk, returning defaults for missing or bad keys."""
    settings = dict(DEFAULTS)
    path = settings_file()
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                # Only accept known keys, reject anything unexpected
                for key in DEFAULTS:
                    if key in data:
                        value = _coerce(key, data[key])
                        if value is not None:
                            settings[key] = value
    except (json.JSONDecodeError, OSError) as exc:
        log.warning("Failed to load settings: %s", exc)
    return settings


def save(settings: dict) -> None:
    """Save settings to disk with restricted permissions."""
    path = settings_file()
    clean = {}
    for key in DEFAULTS:
        value = _coerce(key, settings.get(key, DEFAULTS[key]))
        clean[key] = DEFAULTS[key] if value is None else value
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(clean, indent=2), encoding="utf-8")
        _lock_file_permissions(path)
        log.info("Settings saved to %s", path)
    except OSError as exc:
        log.error("Failed to save settings: %s", exc)


def set_key(key: str, value) -> tuple[bool, str]:
    """Update a single key and save. Returns (ok, message)."""
    if key not in DEFAULTS:
        return False, f"Unknown setting: {key}"
    cleaned = _coerce(key, value)
    if cleaned is None:
        return False, f"Invalid value for {key}"
    if key == "credentials_path":
        ok, message = validate_credentials(cleaned)
        if not ok:
            return False, message
    settings = load()
    settings[key] = cleaned
    save(settings)
    return True, f"{key} = {cleaned}"


def to_config(settings: dict | None = None) -> Config:
    """Build the Config the host pushes into the core."""
    s = dict(DEFAULTS)
    s.update(settings if settings is not None else load())
    return Config(
        update_interval=s["update_interval"],
        yellow_threshold=s["yellow_threshold"],
        orange_threshold=s["orange_threshold"],
        red_threshold=s["red_threshold"],
        credentials_path=s["credentials_path"],
    )
