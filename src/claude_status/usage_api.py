"""HTTP client for the Anthropic OAuth usage API.

SECURITY MODEL:
- Only calls the OAuth usage endpoint (read-only, no billing).
- Uses explicit SSL context with certificate verification.
- Error messages are sanitized; no raw response bodies are kept or logged.
"""

from __future__ import annotations

import http.client
import json
import logging
import ssl
import urllib.error
import urllib.request
from datetime import datetime, timezone

import certifi

from .config import OAUTH_BETA_HEADER, REQUEST_TIMEOUT_SECONDS, USAGE_API_URL, USER_AGENT
from .errors import AuthError, NetworkError, ParseError
from .shared_state import UsageSnapshot, UsageWindow

log = logging.getLogger(__name__)


def _ssl_context() -> ssl.SSLContext:
    """Create an SSL context that verifies against the certifi CA bundle."""
    ctx = ssl.create_default_context(cafile=certifi.where())
    # Enforce minimum TLS 1.2
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    return ctx


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 reset timestamp; None when absent or malformed."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def fetch_usage(access_token: str, timeout: float = REQUEST_TIMEOUT_SECONDS) -> UsageSnapshot:
    """Call the usage endpoint once and return the parsed snapshot.

    Raises AuthError on HTTP 401, NetworkError on any other non-2xx status
    or transport failure, ParseError when a 2xx body cannot be understood.
    """
    req = urllib.request.Request(
        USAGE_API_URL,
        headers={
            "Authorization": f"Bearer {access_token}",
            "anthropic-beta": OAUTH_BETA_HEADER,
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        },
        method="GET",
    )

    try:
        with urllib.request.urlopen(req, timeout=timeout, context=_ssl_context()) as resp:
            status = resp.status
            body = resp.read()
    except urllib.error.HTTPError as exc:
        if exc.code == 401:
            log.warning("API HTTP 401: token rejected")
            raise AuthError("HTTP 401") from None
        log.error("API HTTP %d", exc.code)
        raise NetworkError(f"HTTP {exc.code}") from None
    except urllib.error.URLError as exc:
        reason = str(exc.reason) if exc.reason else "Unknown"
        log.error("API connection failed: %s", reason)
        # Sanitize, don't expose internal network details
        if "certificate" in reason.lower():
            raise NetworkError("SSL certificate error") from None
        raise NetworkError("Connection failed") from None
    except (TimeoutError, OSError) as exc:
        log.error("API connection failed: %s", exc)
        raise NetworkError("Connection failed") from None
    except http.client.HTTPException as exc:
        # Truncated or malformed response from the server or a proxy
        log.error("API response broken off: %s", type(exc).__name__)
        raise NetworkError("Connection failed") from None

    if not 200 <= status < 300:
        log.error("API HTTP %d", status)
        raise NetworkError(f"HTTP {status}")

    try:
        raw = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ParseError("Response is not valid JSON") from None

    return parse_response(raw)


def _window(raw: dict, key: str) -> UsageWindow | None:
    d = raw.get(key)
    if not isinstance(d, dict):
        return None
    utilization = d.get("utilization", 0)
    if utilization is None:
        utilization = 0
    if isinstance(utilization, bool) or not isinstance(utilization, (int, float)):
        raise ParseError(f"{key}.utilization is not a number")
    return UsageWindow(
        utilization=float(utilization),
        resets_at=parse_timestamp(d.get("resets_at")),
    )


def parse_response(raw: object) -> UsageSnapshot:
    """Parse a decoded response body into a UsageSnapshot.

    A missing ``five_hour`` or ``seven_day`` object leaves that window unset.
    """
    if not isinstance(raw, dict):
        raise ParseError("Response is not a JSON object")

    return UsageSnapshot(
        fetched_at=datetime.now(timezone.utc),
        five_hour=_window(raw, "five_hour"),
        seven_day=_window(raw, "seven_day"),
    )
