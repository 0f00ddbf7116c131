"""Authentication via Claude Code's OAuth credential file.

SECURITY MODEL:
- Claude Status NEVER writes credentials to disk.
- The token is read from Claude Code's file and held in memory only until
  the next reload; it is never logged or printed.
- Token refresh is Claude Code's job. We only re-read the file it writes.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from .config import DEFAULT_CREDENTIALS_PATH
from .errors import InvalidCredentialsError, NoCredentialsError
from .shared_state import Credentials, PlanTier

log = logging.getLogger(__name__)


def expand_path(path: str | Path | None) -> Path:
    """Expand a leading ``~`` to the caller's home directory."""
    return Path(path or DEFAULT_CREDENTIALS_PATH).expanduser()


def plan_tier_from(subscription_type: object) -> PlanTier:
    """Map a subscriptionType string to a PlanTier ("max" wins over "pro")."""
    if not isinstance(subscription_type, str):
        return PlanTier.UNKNOWN
    lowered = subscription_type.lower()
    if "max" in lowered:
        return PlanTier.MAX
    if "pro" in lowered:
        return PlanTier.PRO
    return PlanTier.UNKNOWN


def _read_document(cred_path: Path) -> dict:
    try:
        raw = cred_path.read_bytes()
    except FileNotFoundError:
        raise NoCredentialsError(f"Credentials file not found: {cred_path}") from None
    except OSError as exc:
        raise NoCredentialsError(f"Cannot read credentials file: {exc.strerror or exc}") from None

    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise InvalidCredentialsError("Credentials file is not valid JSON") from None
    if not isinstance(data, dict):
        raise InvalidCredentialsError("Credentials file is not a JSON object")
    return data


def load_credentials(path: str | Path | None = None) -> Credentials:
    """Read and validate the OAuth credentials file.

    Raises NoCredentialsError when the file cannot be opened or read, and
    InvalidCredentialsError when it is not a JSON object holding a
    ``claudeAiOauth`` object with a non-empty string ``accessToken``.
    """
    cred_path = expand_path(path)
    data = _read_document(cred_path)

    oauth = data.get("claudeAiOauth")
    if not isinstance(oauth, dict):
        raise InvalidCredentialsError("No claudeAiOauth section in credentials")

    token = oauth.get("accessToken")
    if not isinstance(token, str) or not token:
        raise InvalidCredentialsError("No accessToken in credentials")

    return Credentials(
        access_token=token,
        plan_tier=plan_tier_from(oauth.get("subscriptionType")),
    )


def validate_credentials(path: str | Path | None = None) -> tuple[bool, str]:
    """Check a credentials file without touching any loaded state.

    Returns (ok, message). The message never contains token content.
    """
    try:
        creds = load_credentials(path)
    except (NoCredentialsError, InvalidCredentialsError) as exc:
        return False, str(exc)
    tier = creds.plan_tier.label or "unknown plan"
    return True, f"Credentials OK ({tier})"


class CredentialStore:
    """Owns the currently loaded Credentials, replaced wholesale on each load."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._credentials: Credentials | None = None

    @property
    def current(self) -> Credentials | None:
        with self._lock:
            return self._credentials

    def load(self, path: str | Path | None = None) -> Credentials:
        """Reload from disk. On failure the store is left empty and the error re-raised."""
        try:
            creds = load_credentials(path)
        except (NoCredentialsError, InvalidCredentialsError) as exc:
            with self._lock:
                self._credentials = None
            log.error("Failed to load credentials: %s", exc)
            raise
        with self._lock:
            self._credentials = creds
        log.info("Credentials loaded (plan: %s)", creds.plan_tier.label or "unknown")
        return creds

    def clear(self) -> None:
        """Drop the cached token so the next fetch reloads it."""
        with self._lock:
            self._credentials = None
