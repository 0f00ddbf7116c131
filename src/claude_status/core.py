"""The core every display surface talks to.

One StatusCore per panel or window. The host pushes configuration in through
the setters, drives refresh() from its timer and reads snapshot() to render.
All blocking work (the HTTP call and the transcript scan) runs on a single
worker thread, and at most one update cycle is ever in flight.

RECOVERY LOGIC:
- On 401 the cached token is dropped, the credentials file is re-read
  (Claude Code may have refreshed it) and the fetch retried, at most twice.
- When retries run out, or the file is missing or invalid, the core sits in
  CREDENTIALS_ERROR until the watcher sees the file change or the user
  asks to reconnect.
- Network and parse errors keep the previous usage on screen; the next tick
  tries again.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from .config import (
    AUTH_MAX_RETRIES,
    MAX_THRESHOLD,
    MAX_UPDATE_INTERVAL,
    MIN_THRESHOLD,
    MIN_UPDATE_INTERVAL,
    Config,
    clamp,
)
from .credentials import CredentialStore
from .credentials_watcher import CredentialsWatcher
from .errors import (
    AuthError,
    ClaudeStatusError,
    CredentialsError,
    FetchError,
    ResultCode,
    WatcherError,
)
from .shared_state import (
    ContextSnapshot,
    CoreState,
    Credentials,
    CredentialsInfo,
    PlanTier,
    SharedState,
    StatusSnapshot,
    UsageSnapshot,
)
from .thresholds import Band, classify, color_for_band
from .transcript import read_context
from .usage_api import fetch_usage

log = logging.getLogger(__name__)


class StatusCore:
    """Owns credentials, the usage fetcher, the context scanner and the watcher."""

    def __init__(
        self,
        config: Config | None = None,
        state: SharedState | None = None,
        watcher: CredentialsWatcher | None = None,
    ) -> None:
        self._config = config or Config()
        self._state = state or SharedState()
        self._store = CredentialStore()
        self._watcher = watcher or CredentialsWatcher()

        self._lock = threading.RLock()
        self._core_state = CoreState.IDLE
        self._auth_retry_count = 0
        self._usage: UsageSnapshot | None = None
        self._context: ContextSnapshot | None = None
        self._last_result = ResultCode.OK

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="StatusWorker")
        self._inflight: Future | None = None
        self._closed = threading.Event()

    # -- read side -----------------------------------------------------------

    @property
    def state(self) -> CoreState:
        with self._lock:
            return self._core_state

    @property
    def auth_retry_count(self) -> int:
        with self._lock:
            return self._auth_retry_count

    @property
    def config(self) -> Config:
        """A copy of the current configuration."""
        with self._lock:
            return replace(
                self._config,
                context_window_overrides=dict(self._config.context_window_overrides),
            )

    @property
    def shared_state(self) -> SharedState:
        return self._state

    def snapshot(self) -> StatusSnapshot:
        return self._state.get()

    def get_usage(self) -> UsageSnapshot | None:
        with self._lock:
            return self._usage

    def get_context(self) -> ContextSnapshot | None:
        with self._lock:
            return self._context

    def get_credentials_info(self) -> CredentialsInfo | None:
        creds = self._store.current
        if creds is None:
            return None
        return CredentialsInfo(plan_tier=creds.plan_tier)

    def classify(self, pct: float) -> Band:
        cfg = self._config
        return classify(pct, cfg.yellow_threshold, cfg.orange_threshold, cfg.red_threshold)

    def color_for(self, pct: float) -> str:
        return color_for_band(self.classify(pct))

    # -- configuration -------------------------------------------------------

    def set_update_interval(self, seconds: int) -> None:
        with self._lock:
            self._config.update_interval = clamp(seconds, MIN_UPDATE_INTERVAL, MAX_UPDATE_INTERVAL)
        log.info("Update interval set to %ds", self._config.update_interval)

    def set_yellow_threshold(self, pct: int) -> None:
        with self._lock:
            self._config.yellow_threshold = clamp(pct, MIN_THRESHOLD, MAX_THRESHOLD)

    def set_orange_threshold(self, pct: int) -> None:
        with self._lock:
            self._config.orange_threshold = clamp(pct, MIN_THRESHOLD, MAX_THRESHOLD)

    def set_red_threshold(self, pct: int) -> None:
        with self._lock:
            self._config.red_threshold = clamp(pct, MIN_THRESHOLD, MAX_THRESHOLD)

    def set_credentials_path(self, path: str | Path) -> None:
        """Point the core at another credentials file (re-read on next fetch)."""
        with self._lock:
            self._config.credentials_path = str(path)
            self._store.clear()
        if self._watcher.is_watching:
            self.start_monitor(path)

    def set_context_window_override(self, model_substring: str, size: int | None) -> None:
        """Declare a larger context window for models matching a substring."""
        with self._lock:
            if size is None or size <= 0:
                self._config.context_window_overrides.pop(model_substring, None)
            else:
                self._config.context_window_overrides[model_substring] = int(size)

    # -- credentials ---------------------------------------------------------

    def load_credentials(self, path: str | Path | None = None) -> ResultCode:
        """(Re)load credentials; a given path becomes the configured path."""
        if path is not None:
            with self._lock:
                self._config.credentials_path = str(path)
        try:
            self._store.load(self._config.credentials_path)
        except CredentialsError as exc:
            self._enter_credentials_error(exc.code)
            self._publish()
            return exc.code

        with self._lock:
            if self._core_state is CoreState.CREDENTIALS_ERROR:
                log.info("Credentials recovered")
                self._core_state = CoreState.IDLE
            self._last_result = ResultCode.OK
        self._publish()
        return ResultCode.OK

    def _ensure_credentials(self) -> Credentials:
        creds = self._store.current
        if creds is None:
            creds = self._store.load(self._config.credentials_path)
        return creds

    def _enter_credentials_error(self, code: ResultCode) -> None:
        with self._lock:
            if self._core_state is not CoreState.CREDENTIALS_ERROR:
                log.warning("Entering credentials error state (%s)", code.name)
            self._core_state = CoreState.CREDENTIALS_ERROR
            self._auth_retry_count = 0
            self._last_result = code

    # -- credentials watcher -------------------------------------------------

    def start_monitor(self, path: str | Path | None = None) -> ResultCode:
        try:
            self._watcher.start(path or self._config.credentials_path)
        except WatcherError as exc:
            log.warning("%s", exc)
            return exc.code
        return ResultCode.OK

    def stop_monitor(self) -> None:
        self._watcher.stop()

    def credentials_changed(self) -> bool:
        """Consume the watcher's changed-since-last-check flag."""
        return self._watcher.changed()

    def check_credentials(self) -> bool:
        """Per-tick poll: reload credentials if the file changed. Returns True on change."""
        if not self.credentials_changed():
            return False
        log.info("Credentials file changed, reloading")
        self.load_credentials()
        return True

    # -- fetching ------------------------------------------------------------

    def _set_state(self, state: CoreState) -> None:
        with self._lock:
            if self._core_state is not state:
                log.debug("State %s -> %s", self._core_state.name, state.name)
            self._core_state = state

    def fetch_usage(self) -> ResultCode:
        """One usage request, no retry. Blocking."""
        try:
            creds = self._ensure_credentials()
        except CredentialsError as exc:
            self._enter_credentials_error(exc.code)
            self._publish()
            return exc.code
        try:
            usage = fetch_usage(creds.access_token)
        except FetchError as exc:
            with self._lock:
                self._last_result = exc.code
            return exc.code
        self._accept_usage(usage)
        self._publish()
        return ResultCode.OK

    def _accept_usage(self, usage: UsageSnapshot) -> None:
        with self._lock:
            self._usage = usage
            self._auth_retry_count = 0
            self._last_result = ResultCode.OK
            self._core_state = CoreState.IDLE

    def _fetch_with_auth_retry(self) -> ResultCode:
        """Run FETCHING -> (IDLE | RETRYING_AUTH -> FETCHING | CREDENTIALS_ERROR)."""
        while True:
            self._set_state(CoreState.FETCHING)
            try:
                creds = self._ensure_credentials()
            except CredentialsError as exc:
                self._enter_credentials_error(exc.code)
                return exc.code

            try:
                usage = fetch_usage(creds.access_token)
            except AuthError:
                self._store.clear()
                with self._lock:
                    if self._auth_retry_count >= AUTH_MAX_RETRIES:
                        exhausted = True
                    else:
                        exhausted = False
                        self._auth_retry_count += 1
                        attempt = self._auth_retry_count
                if exhausted:
                    log.warning("Still 401 after %d retries, run `claude` to log in", AUTH_MAX_RETRIES)
                    self._enter_credentials_error(ResultCode.AUTH_ERROR)
                    return ResultCode.AUTH_ERROR

                log.info(
                    "Got 401, re-reading credentials (attempt %d/%d)",
                    attempt, AUTH_MAX_RETRIES,
                )
                self._set_state(CoreState.RETRYING_AUTH)
                try:
                    self._store.load(self._config.credentials_path)
                except CredentialsError as exc:
                    self._enter_credentials_error(exc.code)
                    return exc.code
                continue
            except FetchError as exc:
                log.warning("Usage fetch failed: %s", exc)
                with self._lock:
                    self._last_result = exc.code
                    self._core_state = CoreState.IDLE
                return exc.code

            if self._auth_retry_count:
                log.info("Recovered from 401")
            self._accept_usage(usage)
            return ResultCode.OK

    def read_context(self) -> ResultCode:
        """Rescan the newest transcript. Blocking; a missing log is not an error."""
        cfg = self.config
        context = read_context(cfg.projects_dir, cfg.context_window_overrides)
        with self._lock:
            self._context = context
        self._publish()
        return ResultCode.OK

    def update(self) -> ResultCode:
        """One full cycle: credentials, usage (with auth retry), context. Blocking."""
        result = self._fetch_with_auth_retry()
        cfg = self.config
        context = read_context(cfg.projects_dir, cfg.context_window_overrides)
        with self._lock:
            self._context = context
        self._publish()
        return result

    def _run_cycle(self) -> ResultCode:
        if self._closed.is_set():
            return ResultCode.OK
        try:
            return self.update()
        except ClaudeStatusError as exc:
            log.warning("Update failed: %s", exc)
            return exc.code
        except Exception:
            log.exception("Unexpected error during update")
            with self._lock:
                self._last_result = ResultCode.NETWORK_ERROR
                if self._core_state is not CoreState.CREDENTIALS_ERROR:
                    self._core_state = CoreState.IDLE
            return ResultCode.NETWORK_ERROR

    def refresh(self, force: bool = False) -> bool:
        """Start an update cycle on the worker unless one is already running.

        In CREDENTIALS_ERROR only a forced refresh runs. Returns whether a
        cycle was submitted.
        """
        if self._closed.is_set():
            return False
        with self._lock:
            if self._core_state is CoreState.CREDENTIALS_ERROR and not force:
                log.debug("Skipping refresh, waiting for credentials")
                return False
            if self._inflight is not None and not self._inflight.done():
                log.debug("Refresh already in flight")
                return False
            try:
                self._inflight = self._executor.submit(self._run_cycle)
            except RuntimeError:
                # Executor already shut down
                return False
        return True

    def wait(self, timeout: float | None = None) -> ResultCode | None:
        """Block until the in-flight cycle finishes; None if nothing ran."""
        with self._lock:
            future = self._inflight
        if future is None:
            return None
        return future.result(timeout=timeout)

    def reconnect(self) -> ResultCode:
        """User-initiated retry: reload credentials, then refresh."""
        log.info("Reconnect requested")
        with self._lock:
            self._auth_retry_count = 0
        code = self.load_credentials()
        if code is ResultCode.OK:
            self.refresh(force=True)
        return code

    # -- publishing / teardown -----------------------------------------------

    def _publish(self) -> None:
        # Built and swapped under one lock so publishers cannot reorder
        with self._lock:
            if self._closed.is_set():
                return
            creds = self._store.current
            snap = StatusSnapshot(
                usage=self._usage,
                context=self._context,
                plan_tier=creds.plan_tier if creds else PlanTier.UNKNOWN,
                state=self._core_state,
                last_result=self._last_result,
                updated_at=datetime.now(timezone.utc),
            )
            self._state.update(snap)

    def close(self) -> None:
        """Stop the watcher and drop any in-flight result."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._watcher.stop()
        self._executor.shutdown(wait=False, cancel_futures=True)
        log.info("Core closed")
