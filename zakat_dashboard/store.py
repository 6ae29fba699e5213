"""
State container and persistence gateway.

DashboardStore holds the single current DashboardState snapshot and
exposes the mutations allowed on it (sync-apply, admin-save). Every
mutation swaps in a new immutable snapshot under a lock, writes it to the
JSON storage slot, then notifies subscribers.

JsonFileStorage is the durable slot: one JSON file with the full state,
read once at startup and overwritten on every successful mutation.
"""

import json
import logging
import os
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable

from .config import DATA_SOURCE_SHEETS, STORAGE_FILE
from .models import Category, DailyEntry, DashboardState, HistoryPoint
from .simulator import default_state

logger = logging.getLogger(__name__)

Listener = Callable[[DashboardState], None]


def now_stamp() -> str:
    """Local time of a successful mutation, second precision."""
    return datetime.now().isoformat(timespec="seconds")


class JsonFileStorage:
    """Read/write the full dashboard state as JSON text in one file."""

    def __init__(self, path: str | Path = STORAGE_FILE):
        self.path = Path(path)

    def load(self) -> DashboardState | None:
        """Return the stored state, or None if the slot is empty or unreadable."""
        if not self.path.exists():
            return None
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Could not read stored state from %s; ignoring it", self.path)
            return None
        if not isinstance(raw, dict):
            logger.warning("Stored state in %s is not an object; ignoring it", self.path)
            return None
        return DashboardState.from_dict(raw)

    def save(self, state: DashboardState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(state.to_dict(), ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)

    def clear(self) -> None:
        """Delete the slot. The next startup falls back to the default state."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


class DashboardStore:
    """Owner of the current DashboardState snapshot."""

    def __init__(self, storage: JsonFileStorage, state: DashboardState):
        self.storage = storage
        self._state = state
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    @classmethod
    def open(cls, storage: JsonFileStorage | None = None) -> "DashboardStore":
        """Restore from storage, or start from the built-in default."""
        storage = storage or JsonFileStorage()
        state = storage.load()
        if state is None:
            logger.info("No stored state at %s; using defaults", storage.path)
            state = default_state()
        return cls(storage, state)

    @property
    def state(self) -> DashboardState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(new_state)` after each mutation. Returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(
        self,
        build: Callable[[DashboardState], DashboardState],
        persist: bool = True,
    ) -> DashboardState:
        with self._lock:
            new_state = build(self._state)
            self._state = new_state
            if persist:
                try:
                    self.storage.save(new_state)
                except OSError:
                    logger.exception("Failed to persist dashboard state to %s", self.storage.path)

        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    def apply_sync(
        self,
        spreadsheet_id: str,
        categories: list[Category],
        monthly_history: list[HistoryPoint],
        daily_history: list[DailyEntry],
    ) -> DashboardState:
        """Replace the sheet-derived fields in one step and persist."""

        def build(current: DashboardState) -> DashboardState:
            updated = replace(
                current,
                spreadsheet_id=spreadsheet_id,
                monthly_history=tuple(monthly_history),
                daily_history=tuple(daily_history),
                data_source=DATA_SOURCE_SHEETS,
                last_update=now_stamp(),
            )
            return updated.with_categories(categories)

        return self._commit(build)

    def save(self, state: DashboardState) -> DashboardState:
        """Replace the whole state (admin save). Totals are recomputed."""
        return self._commit(lambda _current: state.with_categories(state.categories))

    def reset(self) -> DashboardState:
        """Clear storage and return to the built-in default state.

        The default is not written back; the slot stays empty until the
        next mutation.
        """
        self.storage.clear()
        return self._commit(lambda _current: default_state(), persist=False)
