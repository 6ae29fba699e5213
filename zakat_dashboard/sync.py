"""
Spreadsheet sync: fetch -> parse -> normalise -> aggregate -> persist.

SyncOrchestrator runs one sync attempt at a time per call; callers may
overlap attempts freely. AutoSync owns the recurring trigger and cancels
it when the data source, the spreadsheet id or the enabled flag change,
or when it is closed.

Lifecycle
---------
    IDLE --sync()--> SYNCING --ok--> IDLE
                             --fetch failed--> ERROR (transient)
    ERROR --sync()--> SYNCING

ERROR only sets a flag for the UI; it never blocks the next attempt.
"""

import itertools
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from .config import (
    DATA_SOURCE_SHEETS,
    SHEET_CATEGORIES,
    SHEET_DAILY,
    SHEET_HISTORY,
    SYNC_INTERVAL_SECONDS,
)
from .errors import SheetFetchError
from .loaders import normalize_categories, normalize_daily, normalize_history, parse_csv_records
from .models import Category, DailyEntry, DashboardState, HistoryPoint
from .sheets import SheetsClient
from .store import DashboardStore

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


def build_snapshot(
    texts: dict[str, str],
) -> tuple[list[Category], list[HistoryPoint], list[DailyEntry]]:
    """Parse and normalise the three sheet exports."""
    categories = normalize_categories(parse_csv_records(texts[SHEET_CATEGORIES]))
    monthly = normalize_history(parse_csv_records(texts[SHEET_HISTORY]))
    daily = normalize_daily(parse_csv_records(texts[SHEET_DAILY]))
    return categories, monthly, daily


class SyncOrchestrator:
    """Drive sync attempts against the spreadsheet source.

    Each attempt gets a number from a monotonic counter. A completed
    attempt is applied only if no later-started attempt has already been
    applied, so a slow stale fetch cannot overwrite fresher data.
    """

    def __init__(self, store: DashboardStore, client: Optional[SheetsClient] = None):
        self.store = store
        self.client = client or SheetsClient()
        self.last_error: str | None = None
        self._lock = threading.Lock()
        self._attempts = itertools.count(1)
        self._last_applied = 0
        self._in_flight = 0
        self._busy = 0

    @property
    def status(self) -> SyncStatus:
        if self._in_flight:
            return SyncStatus.SYNCING
        if self.last_error:
            return SyncStatus.ERROR
        return SyncStatus.IDLE

    @property
    def is_busy(self) -> bool:
        """True while a non-silent sync is running (drives the spinner)."""
        return self._busy > 0

    def sync(self, spreadsheet_id: str, silent: bool = False) -> bool:
        """Run one sync attempt. Returns True if new state was applied.

        Failures are logged and recorded in last_error; prior state is kept.
        """
        spreadsheet_id = (spreadsheet_id or "").strip()
        if not spreadsheet_id:
            return False

        with self._lock:
            attempt = next(self._attempts)
            self._in_flight += 1
            if not silent:
                self._busy += 1

        try:
            texts = self.client.fetch_all(spreadsheet_id)
            categories, monthly, daily = build_snapshot(texts)
            return self._apply(attempt, spreadsheet_id, categories, monthly, daily)
        except SheetFetchError as e:
            logger.warning("Spreadsheet sync %d failed: %s", attempt, e)
            self.last_error = str(e)
            return False
        finally:
            with self._lock:
                self._in_flight -= 1
                if not silent:
                    self._busy -= 1

    def _apply(
        self,
        attempt: int,
        spreadsheet_id: str,
        categories: list[Category],
        monthly: list[HistoryPoint],
        daily: list[DailyEntry],
    ) -> bool:
        with self._lock:
            if attempt < self._last_applied:
                logger.info(
                    "Discarding sync attempt %d; attempt %d already applied",
                    attempt, self._last_applied,
                )
                return False
            self._last_applied = attempt
            self.store.apply_sync(spreadsheet_id, categories, monthly, daily)

        self.last_error = None
        logger.info(
            "Sync %d applied: %d categories, %d history rows, %d daily rows",
            attempt, len(categories), len(monthly), len(daily),
        )
        return True


class RecurringTask:
    """Call `fn` immediately, then every `interval` seconds, until cancelled."""

    def __init__(self, fn: Callable[[], object], interval: float, name: str = "recurring-task"):
        self.fn = fn
        self.interval = interval
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> "RecurringTask":
        self._thread.start()
        return self

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.fn()
            except Exception:
                logger.exception("Recurring task %s raised", self._thread.name)
            if self._stop.wait(self.interval):
                break

    def cancel(self, wait: bool = True, timeout: float | None = None) -> None:
        """Stop future runs. With wait=True, also wait for a run in progress."""
        self._stop.set()
        if wait and self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)


class AutoSync:
    """Keep a silent recurring sync running while the state calls for it.

    Runs while data_source is "sheets", spreadsheet_id is non-empty and
    auto-sync is enabled. Use as a context manager so the timer is always
    cancelled:

        with AutoSync(store, orchestrator):
            ...
    """

    def __init__(
        self,
        store: DashboardStore,
        orchestrator: SyncOrchestrator,
        interval: float = SYNC_INTERVAL_SECONDS,
        enabled: bool = True,
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.interval = interval
        self._enabled = enabled
        self._lock = threading.Lock()
        self._task: RecurringTask | None = None
        self._task_id: str | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def active_spreadsheet_id(self) -> str | None:
        """Spreadsheet id currently being polled, or None."""
        return self._task_id if self._task is not None else None

    def start(self) -> "AutoSync":
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._reconcile)
        self._reconcile(self.store.state)
        return self

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        self._reconcile(self.store.state)

    def _wanted_id(self, state: DashboardState) -> str | None:
        if not self._enabled or self._unsubscribe is None:
            return None
        if state.data_source != DATA_SOURCE_SHEETS:
            return None
        return state.spreadsheet_id.strip() or None

    def _reconcile(self, state: DashboardState) -> None:
        wanted = self._wanted_id(state)
        with self._lock:
            if wanted == self._task_id and (self._task is not None) == (wanted is not None):
                return
            if self._task is not None:
                logger.info("Stopping auto-sync for %s", self._task_id)
                self._task.cancel(wait=False)
            self._task = None
            self._task_id = wanted
            if wanted is None:
                return
            logger.info("Starting auto-sync for %s every %ss", wanted, self.interval)
            self._task = RecurringTask(
                lambda: self.orchestrator.sync(wanted, silent=True),
                self.interval,
                name=f"auto-sync-{wanted}",
            ).start()

    def close(self) -> None:
        """Cancel the recurring sync and stop following state changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        with self._lock:
            task, self._task, self._task_id = self._task, None, None
        if task is not None:
            task.cancel(wait=True, timeout=self.interval)

    def __enter__(self) -> "AutoSync":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
