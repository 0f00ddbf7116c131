"""Formatting helpers for countdowns, bars and the tooltip."""

from __future__ import annotations

from datetime import datetime, timezone

from .config import APP_NAME
from .shared_state import StatusSnapshot


def format_reset_time(reset_at: datetime | None, now: datetime | None = None) -> str:
    """Relative time until a reset.

    Examples: "2h 15m", "45m", "3d 5h", "now"
    """
    if reset_at is None:
        return "unknown"
    now = now or datetime.now(timezone.utc)
    total_seconds = int((reset_at - now).total_seconds())
    if total_seconds <= 0:
        return "now"

    days = total_seconds // 86400
    hours = (total_seconds % 86400) // 3600
    minutes = (total_seconds % 3600) // 60

    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_reset_clock(reset_at: datetime | None, with_day: bool = False) -> str:
    """Local wall-clock time of a reset, e.g. "1:05 PM" or "Mon 1:05 PM"."""
    if reset_at is None:
        return "unknown"
    local_dt = reset_at.astimezone()
    hour = local_dt.hour % 12 or 12
    clock = f"{hour}:{local_dt.minute:02d} {'AM' if local_dt.hour < 12 else 'PM'}"
    if with_day:
        return f"{local_dt.strftime('%a')} {clock}"
    return clock


def pct_str(value: float | None) -> str:
    """Format a percentage value as a compact string."""
    if value is None:
        return "--"
    return f"{value:.0f}%"


def usage_bar(pct: float | None, width: int = 8) -> str:
    """Text progress bar: '███░░░░░'. Any non-zero value shows one cell."""
    pct = max(0.0, min(100.0, pct or 0.0))
    filled = int(pct * width // 100)
    if pct > 0 and filled == 0:
        filled = 1
    return "█" * filled + "░" * (width - filled)


def format_tokens(count: int) -> str:
    return f"{count:,}"


def build_tooltip(snapshot: StatusSnapshot, now: datetime | None = None) -> str:
    """Multi-line summary shown when hovering the display."""
    plan = snapshot.plan_tier.label or "unknown"
    lines = [f"{APP_NAME} · {plan}"]

    if snapshot.needs_login:
        lines.append("No valid credentials, run `claude` to log in")
        return "\n".join(lines)

    usage = snapshot.usage
    if usage is None:
        lines.append("Waiting for usage data...")
    else:
        if usage.five_hour is not None:
            line = f"5-hour: {usage.five_hour.utilization:.1f}% {usage_bar(usage.five_hour.utilization)}"
            if usage.five_hour.resets_at:
                line += (
                    f" (resets {format_reset_clock(usage.five_hour.resets_at)},"
                    f" in {format_reset_time(usage.five_hour.resets_at, now)})"
                )
            lines.append(line)
        if usage.seven_day is not None:
            line = f"7-day: {usage.seven_day.utilization:.1f}% {usage_bar(usage.seven_day.utilization)}"
            if usage.seven_day.resets_at:
                line += (
                    f" (resets {format_reset_clock(usage.seven_day.resets_at, with_day=True)},"
                    f" in {format_reset_time(usage.seven_day.resets_at, now)})"
                )
            lines.append(line)

    ctx = snapshot.context
    if ctx is not None and ctx.window_size > 0:
        lines.append(
            f"Context: {format_tokens(ctx.tokens_used)} / {format_tokens(ctx.window_size)}"
            f" tokens ({ctx.pct:.0f}%)"
        )
        if ctx.model_name:
            lines.append(f"Model: {ctx.model_name}")

    if usage is not None:
        lines.append(f"Updated: {usage.fetched_at.astimezone().strftime('%H:%M:%S')}")
    return "\n".join(lines)
