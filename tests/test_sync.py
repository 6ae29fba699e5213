import threading
import time
from dataclasses import replace

from conftest import SHEET_TEXTS, FakeSession

from zakat_dashboard.errors import SheetFetchError
from zakat_dashboard.sheets import SheetsClient
from zakat_dashboard.sync import AutoSync, RecurringTask, SyncOrchestrator, SyncStatus


def wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_fetch_all_requests_three_export_urls():
    session = FakeSession()
    texts = SheetsClient(session=session).fetch_all("abc")
    assert set(texts) == {"Categories", "History", "Daily"}
    assert sorted(u.rsplit("=", 1)[-1] for u in session.urls) == ["Categories", "Daily", "History"]
    assert all(u.startswith("https://docs.google.com/spreadsheets/d/abc/gviz/tq?tqx=out:csv") for u in session.urls)


def test_fetch_sheet_raises_on_http_error():
    client = SheetsClient(session=FakeSession(status={"Daily": 404}))
    try:
        client.fetch_all("abc")
    except SheetFetchError as e:
        assert e.sheet == "Daily"
        assert e.status == 404
    else:
        raise AssertionError("expected SheetFetchError")


def test_successful_sync_replaces_state(store, storage):
    orchestrator = SyncOrchestrator(store, SheetsClient(session=FakeSession()))

    assert orchestrator.sync("sheet-1") is True

    state = store.state
    assert [c.name for c in state.categories] == ["UPZ", "Desa, Komunitas"]
    assert state.categories[1].color == "#10b981"
    assert (state.total_collected, state.total_target, state.total_muzaki) == (1_500_000, 3_000_000, 8)
    assert [(h.month, h.amount, h.category) for h in state.monthly_history] == [
        ("Jan", 100, "UPZ"), ("Jan", 50, "Desa, Komunitas"), ("Feb", 70, "UPZ"),
    ]
    assert [d.label for d in state.daily_history] == ["05 Jan", "12 Jan", "02 Feb"]
    assert state.daily_history[2].category == "Umum"
    assert state.data_source == "sheets"
    assert state.spreadsheet_id == "sheet-1"
    assert storage.load() == state
    assert orchestrator.status is SyncStatus.IDLE


def test_failed_fetch_leaves_state_untouched(store, storage):
    storage.save(store.state)
    before = store.state
    stored_before = storage.path.read_bytes()
    orchestrator = SyncOrchestrator(store, SheetsClient(session=FakeSession(status={"History": 500})))

    assert orchestrator.sync("sheet-1") is False

    assert store.state is before
    assert store.state.categories == before.categories
    assert store.state.monthly_history == before.monthly_history
    assert store.state.daily_history == before.daily_history
    assert storage.path.read_bytes() == stored_before
    assert orchestrator.status is SyncStatus.ERROR
    assert "History" in orchestrator.last_error


def test_error_is_transient(store):
    session = FakeSession(status={"Categories": 503})
    orchestrator = SyncOrchestrator(store, SheetsClient(session=session))
    orchestrator.sync("sheet-1")
    assert orchestrator.status is SyncStatus.ERROR

    session.status = {}
    assert orchestrator.sync("sheet-1") is True
    assert orchestrator.status is SyncStatus.IDLE
    assert orchestrator.last_error is None


def test_empty_id_is_a_no_op(store):
    session = FakeSession()
    orchestrator = SyncOrchestrator(store, SheetsClient(session=session))
    before = store.state

    assert orchestrator.sync("") is False
    assert orchestrator.sync("   ") is False
    assert session.urls == []
    assert store.state is before


def test_silent_controls_only_busy_flag(store):
    seen = []
    orchestrator = SyncOrchestrator(store)
    orchestrator.client = SheetsClient(
        session=FakeSession(probe=lambda: seen.append((orchestrator.is_busy, orchestrator.status)))
    )

    assert orchestrator.sync("sheet-1", silent=True) is True
    assert {busy for busy, _ in seen} == {False}
    assert {status for _, status in seen} == {SyncStatus.SYNCING}

    seen.clear()
    assert orchestrator.sync("sheet-1", silent=False) is True
    assert {busy for busy, _ in seen} == {True}
    assert orchestrator.is_busy is False


class ScriptedClient:
    """fetch_all returns scripted payloads; a gated payload blocks until released."""

    def __init__(self, script):
        self.script = list(script)
        self.started = threading.Event()
        self._lock = threading.Lock()

    def fetch_all(self, spreadsheet_id):
        with self._lock:
            gate, texts = self.script.pop(0)
        self.started.set()
        if gate is not None:
            gate.wait(5)
        return texts


def test_stale_completion_is_discarded(store):
    old_texts = dict(SHEET_TEXTS, Categories='name,collected\n"Old","1"')
    new_texts = dict(SHEET_TEXTS, Categories='name,collected\n"New","2"')
    gate = threading.Event()
    client = ScriptedClient([(gate, old_texts), (None, new_texts)])
    orchestrator = SyncOrchestrator(store, client)

    results = {}
    slow = threading.Thread(target=lambda: results.setdefault("slow", orchestrator.sync("s", silent=True)))
    slow.start()
    assert client.started.wait(2)

    assert orchestrator.sync("s") is True
    gate.set()
    slow.join(2)

    assert results["slow"] is False
    assert [c.name for c in store.state.categories] == ["New"]


def test_recurring_task_runs_immediately_and_stops():
    calls = []
    task = RecurringTask(lambda: calls.append(1), interval=0.02).start()
    assert wait_for(lambda: len(calls) >= 3)
    task.cancel()
    count = len(calls)
    time.sleep(0.1)
    assert len(calls) == count
    assert not task.active


def test_recurring_task_survives_errors():
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")

    task = RecurringTask(flaky, interval=0.01).start()
    assert wait_for(lambda: len(calls) >= 2)
    task.cancel()


def sheets_store(store):
    return store.save(replace(store.state, data_source="sheets", spreadsheet_id="sheet-1"))


def test_auto_sync_polls_until_closed(store):
    sheets_store(store)
    session = FakeSession()
    orchestrator = SyncOrchestrator(store, SheetsClient(session=session))

    with AutoSync(store, orchestrator, interval=0.05) as auto:
        assert auto.active_spreadsheet_id == "sheet-1"
        assert wait_for(lambda: len(session.urls) >= 6)

    assert auto.active_spreadsheet_id is None
    count = len(session.urls)
    time.sleep(0.2)
    assert len(session.urls) == count


def test_auto_sync_idle_for_manual_source(store):
    orchestrator = SyncOrchestrator(store, SheetsClient(session=FakeSession()))
    with AutoSync(store, orchestrator, interval=0.05) as auto:
        assert auto.active_spreadsheet_id is None


def test_auto_sync_follows_state_and_toggle(store):
    sheets_store(store)
    # fetches fail so background syncs never rewrite the spreadsheet id
    orchestrator = SyncOrchestrator(store, SheetsClient(session=FakeSession(status={"Categories": 500})))

    with AutoSync(store, orchestrator, interval=0.05) as auto:
        assert auto.active_spreadsheet_id == "sheet-1"

        store.save(replace(store.state, spreadsheet_id="sheet-2"))
        assert auto.active_spreadsheet_id == "sheet-2"

        auto.set_enabled(False)
        assert auto.active_spreadsheet_id is None

        auto.set_enabled(True)
        assert auto.active_spreadsheet_id == "sheet-2"

        store.save(replace(store.state, data_source="manual"))
        assert auto.active_spreadsheet_id is None


def test_auto_sync_disabled_at_start(store):
    sheets_store(store)
    session = FakeSession()
    orchestrator = SyncOrchestrator(store, SheetsClient(session=session))
    with AutoSync(store, orchestrator, interval=0.05, enabled=False) as auto:
        assert auto.active_spreadsheet_id is None
        time.sleep(0.1)
    assert session.urls == []
