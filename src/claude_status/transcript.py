"""Context-window usage recovered from Claude Code transcript logs.

Transcripts live at ``~/.claude/projects/<project>/<session>.jsonl``, one
JSON record per line. Each assistant record reports the context consumed by
that turn, so only the last one counts; summing across records would double
count.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .config import CONTEXT_WINDOW_DEFAULT, TRANSCRIPT_SUFFIX
from .shared_state import ContextSnapshot

log = logging.getLogger(__name__)

_USAGE_KEYS = ("input_tokens", "cache_creation_input_tokens", "cache_read_input_tokens")


def find_latest_transcript(root: Path) -> Path | None:
    """Return the most recently modified transcript two levels under root."""
    latest_path: Path | None = None
    latest_mtime = 0.0

    try:
        projects = list(root.iterdir())
    except OSError:
        return None

    for project in projects:
        if project.name.startswith(".") or not project.is_dir():
            continue
        try:
            entries = list(project.iterdir())
        except OSError:
            continue
        for entry in entries:
            if not entry.name.endswith(TRANSCRIPT_SUFFIX):
                continue
            try:
                st = entry.stat()
            except OSError:
                continue
            if latest_path is None or st.st_mtime > latest_mtime:
                latest_mtime = st.st_mtime
                latest_path = entry

    return latest_path


def context_window_for_model(model: str | None, overrides: dict[str, int] | None = None) -> int:
    """Context window size for a model name.

    Models with a 1M window in beta still give consumer OAuth accounts 200K,
    so the default applies unless the host configured an override whose key
    is a substring of the model name.
    """
    if not model:
        return CONTEXT_WINDOW_DEFAULT
    lowered = model.lower()
    for needle, size in (overrides or {}).items():
        if needle and needle.lower() in lowered and size > 0:
            return size
    return CONTEXT_WINDOW_DEFAULT


def _token_count(usage: dict, key: str) -> int:
    value = usage.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def scan_transcript(path: Path, overrides: dict[str, int] | None = None) -> ContextSnapshot:
    """Scan one transcript and keep the usage of its last assistant record."""
    last_usage: tuple[int, int, int] | None = None
    last_model: str | None = None

    try:
        fp = open(path, "r", encoding="utf-8", errors="replace")
    except OSError as exc:
        log.debug("Cannot open transcript %s: %s", path, exc)
        return ContextSnapshot.empty()

    with fp:
        for line in fp:
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                # Partially written line from a live session
                continue
            if not isinstance(record, dict) or record.get("type") != "assistant":
                continue
            message = record.get("message")
            if not isinstance(message, dict):
                continue
            usage = message.get("usage")
            if not isinstance(usage, dict):
                continue

            model = message.get("model")
            if isinstance(model, str) and model:
                last_model = model
            last_usage = tuple(_token_count(usage, key) for key in _USAGE_KEYS)

    if last_usage is None:
        return ContextSnapshot.empty()

    tokens_used = sum(last_usage)
    window = context_window_for_model(last_model, overrides)
    return ContextSnapshot.from_tokens(tokens_used, window, last_model)


def read_context(root: Path, overrides: dict[str, int] | None = None) -> ContextSnapshot:
    """Find the newest transcript under root and scan it."""
    path = find_latest_transcript(Path(root))
    if path is None:
        log.debug("No transcripts found under %s", root)
        return ContextSnapshot.empty()
    return scan_transcript(path, overrides)
