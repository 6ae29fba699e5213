import json
from dataclasses import replace
from datetime import date

from zakat_dashboard.models import Category, DailyEntry, HistoryPoint
from zakat_dashboard.simulator import default_state, generate_daily_history
from zakat_dashboard.store import DashboardStore


def test_missing_slot_loads_none(storage):
    assert storage.load() is None


def test_unreadable_slot_is_ignored(storage):
    storage.path.write_text("{not json", encoding="utf-8")
    assert storage.load() is None
    storage.path.write_text("[1, 2]", encoding="utf-8")
    assert storage.load() is None


def test_state_survives_save_and_load(storage, manual_state):
    storage.save(manual_state)
    assert storage.load() == manual_state


def test_stored_json_uses_camel_case_keys(storage, manual_state):
    storage.save(manual_state)
    raw = json.loads(storage.path.read_text(encoding="utf-8"))
    assert raw["institutionName"] == "BAZNAS Test"
    assert raw["totalCollected"] == 150
    assert raw["monthlyHistory"][0] == {"month": "Jan", "date": "2025-01-01", "amount": 10, "category": "A"}


def test_unknown_keys_are_preserved(storage):
    storage.path.write_text(json.dumps({"institutionName": "X", "theme": "dark"}), encoding="utf-8")
    state = storage.load()
    assert state.institution_name == "X"
    assert state.to_dict()["theme"] == "dark"


def test_open_falls_back_to_default(storage):
    store = DashboardStore.open(storage)
    assert store.state.institution_name == "BAZNAS Kabupaten Tasikmalaya"
    assert store.state.data_source == "manual"
    assert not storage.path.exists()


def test_open_restores_stored_state(storage, manual_state):
    storage.save(manual_state)
    assert DashboardStore.open(storage).state == manual_state


def test_apply_sync_replaces_sheet_fields_and_persists(store, storage):
    seen = []
    store.subscribe(seen.append)

    state = store.apply_sync(
        "sheet-1",
        [Category("X", collected=7, target=9, muzaki=1)],
        [HistoryPoint("Mar", "2025-03-01", 7)],
        [],
    )

    assert state.data_source == "sheets"
    assert state.spreadsheet_id == "sheet-1"
    assert (state.total_collected, state.total_target, state.total_muzaki) == (7, 9, 1)
    assert state.daily_history == ()
    assert state.institution_name == "BAZNAS Test"
    assert state.last_update != "2025-01-01"
    assert storage.load() == state
    assert seen == [state]


def test_save_recomputes_totals(store):
    edited = replace(store.state, categories=(Category("Only", collected=1, target=2, muzaki=3),))
    state = store.save(edited)
    assert (state.total_collected, state.total_target, state.total_muzaki) == (1, 2, 3)


def test_unsubscribe_stops_notifications(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)
    unsubscribe()
    store.save(store.state)
    assert seen == []


def test_reset_clears_slot(store, storage):
    store.save(store.state)
    assert storage.path.exists()
    state = store.reset()
    assert not storage.path.exists()
    assert state.institution_name == "BAZNAS Kabupaten Tasikmalaya"


def test_default_state_totals_match_categories():
    state = default_state(seed=1)
    assert state.total_target == 45_000_000_000
    assert state.total_collected == 32_450_000_000
    assert state.total_muzaki == 14_280
    assert len(state.daily_history) == 21


def test_generated_daily_history_ends_today():
    today = date(2025, 3, 10)
    entries = generate_daily_history(days=3, today=today, seed=7)
    assert [e.date for e in entries] == ["2025-03-08", "2025-03-09", "2025-03-10"]
    assert entries[-1].label == "10 Mar"
    assert all(10_000_000 <= e.amount < 60_000_000 for e in entries)


def test_institution_wide_points_omit_category_key():
    assert HistoryPoint("Jan", "2025-01-01", 1).to_dict() == {"month": "Jan", "date": "2025-01-01", "amount": 1}
    assert "category" not in DailyEntry("2025-01-01", 1, "01 Jan").to_dict()
