"""Constants and configuration for Claude Status."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

# App identity
APP_NAME = "Claude Status"
APP_SLUG = "claude-status"
APP_VERSION = "0.1.0"

# API
USAGE_API_URL = "https://api.anthropic.com/api/oauth/usage"
OAUTH_BETA_HEADER = "oauth-2025-04-20"
USER_AGENT = f"{APP_SLUG}/{APP_VERSION}"
REQUEST_TIMEOUT_SECONDS = 10

# Credentials
DEFAULT_CREDENTIALS_PATH = "~/.claude/.credentials.json"

# Transcript logs
DEFAULT_PROJECTS_DIR = Path.home() / ".claude" / "projects"
TRANSCRIPT_SUFFIX = ".jsonl"

# Consumer OAuth accounts get 200K even on models that offer 1M in beta
CONTEXT_WINDOW_DEFAULT = 200_000

# Polling
DEFAULT_UPDATE_INTERVAL = 30
MIN_UPDATE_INTERVAL = 5
MAX_UPDATE_INTERVAL = 300

# Thresholds (percentage)
DEFAULT_YELLOW_THRESHOLD = 25
DEFAULT_ORANGE_THRESHOLD = 50
DEFAULT_RED_THRESHOLD = 75
MIN_THRESHOLD = 1
MAX_THRESHOLD = 99

# Auth retries after a 401 before giving up for this cycle
AUTH_MAX_RETRIES = 2

# Colors
COLOR_GREEN = "#5faf5f"
COLOR_YELLOW = "#d7af5f"
COLOR_ORANGE = "#d78700"
COLOR_RED = "#d75f5f"
COLOR_DIM = "#888888"


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, int(value)))


@dataclass
class Config:
    """Host-owned settings pushed into the core through its setters."""
    update_interval: int = DEFAULT_UPDATE_INTERVAL
    yellow_threshold: int = DEFAULT_YELLOW_THRESHOLD
    orange_threshold: int = DEFAULT_ORANGE_THRESHOLD
    red_threshold: int = DEFAULT_RED_THRESHOLD
    credentials_path: str = DEFAULT_CREDENTIALS_PATH
    projects_dir: Path = DEFAULT_PROJECTS_DIR
    # Model-name substring -> context window size, for accounts with 1M access
    context_window_overrides: dict[str, int] = field(default_factory=dict)
