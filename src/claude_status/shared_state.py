"""Immutable snapshot types and the thread-safe slot that holds them.

SECURITY MODEL:
- Snapshots contain only usage metrics (percentages, timestamps, token counts).
- Credentials never pass through SharedState; only the plan tier does.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from .config import CONTEXT_WINDOW_DEFAULT
from .errors import ResultCode

log = logging.getLogger(__name__)


class PlanTier(Enum):
    UNKNOWN = "unknown"
    PRO = "pro"
    MAX = "max"

    @property
    def label(self) -> str | None:
        """Display name, or None when the tier is unknown."""
        if self is PlanTier.UNKNOWN:
            return None
        return self.value.capitalize()


class CoreState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    RETRYING_AUTH = "retrying_auth"
    CREDENTIALS_ERROR = "credentials_error"


@dataclass(frozen=True)
class Credentials:
    """An OAuth access token plus the plan tier it belongs to."""
    access_token: str = field(repr=False)
    plan_tier: PlanTier = PlanTier.UNKNOWN


@dataclass(frozen=True)
class CredentialsInfo:
    """What the display may know about the credentials: no token."""
    plan_tier: PlanTier


@dataclass(frozen=True)
class UsageWindow:
    """One rolling rate-limit window."""
    utilization: float = 0.0
    resets_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "utilization", max(0.0, min(100.0, float(self.utilization))))


@dataclass(frozen=True)
class UsageSnapshot:
    """Usage returned by one fully parsed, non-error API response."""
    fetched_at: datetime
    five_hour: UsageWindow | None = None
    seven_day: UsageWindow | None = None

    @property
    def five_hour_pct(self) -> float | None:
        return self.five_hour.utilization if self.five_hour else None

    @property
    def seven_day_pct(self) -> float | None:
        return self.seven_day.utilization if self.seven_day else None

    @property
    def five_hour_resets_at(self) -> datetime | None:
        return self.five_hour.resets_at if self.five_hour else None

    @property
    def seven_day_resets_at(self) -> datetime | None:
        return self.seven_day.resets_at if self.seven_day else None


@dataclass(frozen=True)
class ContextSnapshot:
    """Context-window fill recovered from the latest transcript."""
    tokens_used: int = 0
    window_size: int = CONTEXT_WINDOW_DEFAULT
    model_name: str | None = None
    pct: float = 0.0

    @classmethod
    def empty(cls) -> ContextSnapshot:
        return cls()

    @classmethod
    def from_tokens(cls, tokens_used: int, window_size: int, model_name: str | None) -> ContextSnapshot:
        pct = 0.0
        if window_size > 0:
            pct = min(100.0, tokens_used / window_size * 100.0)
        return cls(
            tokens_used=tokens_used,
            window_size=window_size,
            model_name=model_name,
            pct=max(0.0, pct),
        )


@dataclass(frozen=True)
class StatusSnapshot:
    """Everything the display sink renders, replaced as a whole on update."""
    usage: UsageSnapshot | None = None
    context: ContextSnapshot | None = None
    plan_tier: PlanTier = PlanTier.UNKNOWN
    state: CoreState = CoreState.IDLE
    last_result: ResultCode = ResultCode.OK
    updated_at: datetime | None = None

    @property
    def needs_login(self) -> bool:
        return self.state is CoreState.CREDENTIALS_ERROR


class SharedState:
    """Thread-safe wrapper around StatusSnapshot with change callbacks."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data = StatusSnapshot()
        self._callbacks: list[Callable[[StatusSnapshot], None]] = []

    def update(self, data: StatusSnapshot) -> None:
        """Swap in a new snapshot and notify all callbacks."""
        with self._lock:
            self._data = data
            callbacks = list(self._callbacks)
        for cb in callbacks:
            try:
                cb(data)
            except Exception:
                log.debug("Callback error in %s", getattr(cb, "__name__", cb), exc_info=True)

    def get(self) -> StatusSnapshot:
        """Return the current snapshot."""
        with self._lock:
            return self._data

    def on_change(self, callback: Callable[[StatusSnapshot], None]) -> None:
        """Register a callback to be invoked on every update."""
        with self._lock:
            self._callbacks.append(callback)
