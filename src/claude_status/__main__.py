"""Entry point for Claude Status.

SECURITY MODEL:
- No mode ever prints tokens, credentials, or partial keys.
- Only usage percentages, reset times and token counts are displayed.
"""

import logging
import os
import sys
import time
from pathlib import Path

from .config import APP_NAME, APP_SLUG


def _log_path() -> Path:
    base = os.environ.get("XDG_DATA_HOME")
    root = Path(base) if base else Path.home() / ".local" / "share"
    return root / APP_SLUG / f"{APP_SLUG}.log"


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
    datefmt = "%H:%M:%S"

    # Console handler
    logging.basicConfig(level=level, format=fmt, datefmt=datefmt)

    # File handler: keep the last session's log for diagnosing crashes
    log_path = _log_path()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_path), mode="w", encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
        logging.getLogger().addHandler(fh)
    except OSError:
        pass  # can't write log file, not fatal


def _print_usage() -> None:
    print(f"{APP_NAME}: Claude plan usage at a glance.")
    print()
    print("Usage:")
    print("  claude-status                   Start the tray icon")
    print("  claude-status --once            Fetch once and print a report")
    print("  claude-status --watch           Print every update until Ctrl+C")
    print("  claude-status --validate PATH   Check a credentials file")
    print("  claude-status --verbose         Verbose logging")


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv

    if "--help" in args or "-h" in args:
        _print_usage()
        return 0

    if "--validate" in args:
        idx = args.index("--validate")
        path = args[idx + 1] if idx + 1 < len(args) else None
        return _validate(path)

    verbose = "--verbose" in args or "-v" in args
    _setup_logging(verbose)

    if "--once" in args:
        return _once()

    if "--watch" in args:
        return _watch()

    # Normal launch
    from .app import App
    App().run()
    return 0


def _validate(path: str | None) -> int:
    from .credentials import validate_credentials

    ok, message = validate_credentials(path)
    print(message if ok else f"ERROR: {message}")
    return 0 if ok else 1


def _report(snapshot) -> None:
    from .utils import build_tooltip
    print(build_tooltip(snapshot))


def _once() -> int:
    """One synchronous cycle: fetch usage, scan context, print."""
    from . import settings
    from .core import StatusCore
    from .errors import ResultCode

    core = StatusCore(config=settings.to_config())
    try:
        code = core.update()
        _report(core.snapshot())
    finally:
        core.close()

    if code is not ResultCode.OK:
        print(f"\nERROR: {code.name}")
        return 1
    return 0


def _watch() -> int:
    """Run the monitor and print every published snapshot."""
    from . import settings
    from .core import StatusCore
    from .usage_monitor import UsageMonitor

    core = StatusCore(config=settings.to_config())

    def on_update(snapshot) -> None:
        print()
        _report(snapshot)

    core.shared_state.on_change(on_update)
    core.load_credentials()
    core.start_monitor()

    monitor = UsageMonitor(core)
    print(f"Starting monitor (Ctrl+C to stop, every {core.config.update_interval}s)...")
    monitor.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        monitor.stop()
        core.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
