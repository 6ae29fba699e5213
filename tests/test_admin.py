from dataclasses import replace

import pytest
from conftest import FakeSession

from zakat_dashboard.admin import (
    add_category,
    decode_logo,
    encode_logo,
    remove_category,
    save_admin,
    sync_form,
    update_category,
    verify_pin,
)
from zakat_dashboard.errors import ValidationError
from zakat_dashboard.models import Category
from zakat_dashboard.sheets import SheetsClient
from zakat_dashboard.sync import AutoSync, SyncOrchestrator


def test_verify_pin(manual_state):
    assert verify_pin(manual_state, "1234")
    assert not verify_pin(manual_state, "4321")
    assert not verify_pin(manual_state, " 1234")


def test_add_category_appends_with_zero_collected(manual_state):
    categories = add_category(manual_state.categories, "  Zakat Fitrah ", 1000, "#123456")
    assert len(categories) == 3
    assert categories[-1] == Category("Zakat Fitrah", collected=0, target=1000, muzaki=0, color="#123456")
    # input untouched
    assert len(manual_state.categories) == 2


@pytest.mark.parametrize("name", ["", "   ", "A"])
def test_add_category_rejects_blank_or_duplicate(manual_state, name):
    with pytest.raises(ValidationError):
        add_category(manual_state.categories, name)


def test_update_category_coerces_numbers(manual_state):
    categories = update_category(manual_state.categories, 0, "target", "500")
    assert categories[0].target == 500
    categories = update_category(categories, 0, "collected", "abc")
    assert categories[0].collected == 0
    categories = update_category(categories, 1, "name", "Baru")
    assert categories[1].name == "Baru"


def test_update_category_unknown_field(manual_state):
    with pytest.raises(ValidationError):
        update_category(manual_state.categories, 0, "budget", 1)


def test_remove_category(manual_state):
    categories = remove_category(manual_state.categories, 0)
    assert [c.name for c in categories] == ["B"]


def test_save_admin_pin_mismatch_leaves_state(store, storage):
    before = store.state
    with pytest.raises(ValidationError, match="tidak cocok"):
        save_admin(store, before, new_pin="1111", confirm_pin="2222")
    assert store.state is before
    assert storage.load() is None


def test_save_admin_rejects_empty_pin(store):
    with pytest.raises(ValidationError):
        save_admin(store, store.state, new_pin="", confirm_pin="")


def test_save_admin_persists_and_recomputes_totals(store, storage):
    edited = store.state.with_categories(
        add_category(store.state.categories, "C", target=300)
    )
    edited = edited.with_categories(update_category(edited.categories, 2, "collected", 25))

    saved = save_admin(store, edited, new_pin="9999", confirm_pin="9999", spreadsheet_id=" sheet-9 ")

    assert saved.admin_pin == "9999"
    assert saved.spreadsheet_id == "sheet-9"
    assert saved.total_target == 600
    assert saved.total_collected == 175
    assert saved.total_muzaki == 6
    assert saved.last_update != "2025-01-01"
    assert storage.load() == saved


def test_update_category_clamps_negative_and_float_values(manual_state):
    categories = update_category(manual_state.categories, 0, "target", "-5")
    assert categories[0].target == 0
    categories = update_category(categories, 0, "collected", 1500.7)
    assert categories[0].collected == 1500
    categories = update_category(categories, 0, "muzaki", float("nan"))
    assert categories[0].muzaki == 0


def test_edited_category_rows_are_non_negative():
    cat = Category.from_dict({"name": "X", "collected": -10, "target": "2500.0", "muzaki": None})
    assert (cat.collected, cat.target, cat.muzaki) == (0, 2500, 0)


def test_form_sync_then_save_keeps_synced_data(store, storage):
    orchestrator = SyncOrchestrator(store, SheetsClient(session=FakeSession()))
    form = replace(store.state, institution_name="BAZNAS Baru")

    ok, form = sync_form(orchestrator, form, "sheet-1")
    assert ok
    saved = save_admin(store, form, "1234", "1234", spreadsheet_id="sheet-1", data_source=form.data_source)

    stored = storage.load()
    assert stored == saved
    assert stored.data_source == "sheets"
    assert stored.spreadsheet_id == "sheet-1"
    assert [c.name for c in stored.categories] == ["UPZ", "Desa, Komunitas"]
    assert stored.institution_name == "BAZNAS Baru"


def test_form_sync_failure_keeps_working_copy(store):
    orchestrator = SyncOrchestrator(store, SheetsClient(session=FakeSession(status={"Daily": 404})))
    form = replace(store.state, institution_name="Draft")

    ok, result = sync_form(orchestrator, form, "sheet-1")

    assert not ok
    assert result is form


def test_switching_to_manual_stops_auto_sync(store):
    store.save(replace(store.state, data_source="sheets", spreadsheet_id="sheet-1"))
    # fetches fail so background syncs never touch the state
    orchestrator = SyncOrchestrator(store, SheetsClient(session=FakeSession(status={"Categories": 500})))

    with AutoSync(store, orchestrator, interval=0.05) as auto:
        assert auto.active_spreadsheet_id == "sheet-1"

        saved = save_admin(store, store.state, data_source="manual")

        assert saved.data_source == "manual"
        assert auto.active_spreadsheet_id is None

        save_admin(store, store.state, data_source="sheets")
        assert auto.active_spreadsheet_id == "sheet-1"


def test_unknown_data_source_is_rejected(store):
    before = store.state
    with pytest.raises(ValidationError):
        save_admin(store, before, data_source="excel")
    assert store.state is before


def test_logo_upload_round_trip():
    png = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
    data_url = encode_logo(png, "image/png")
    assert data_url.startswith("data:image/png;base64,")
    assert decode_logo(data_url) == png
    assert decode_logo("") is None


def test_logo_upload_limits():
    with pytest.raises(ValidationError, match="2MB"):
        encode_logo(b"\x00" * (2 * 1024 * 1024 + 1), "image/png")
    with pytest.raises(ValidationError):
        encode_logo(b"text", "text/plain")
    assert encode_logo(b"\x00" * (2 * 1024 * 1024), "image/jpeg").startswith("data:image/jpeg")
