"""
Admin operations: PIN check and category/configuration edits.

Category helpers return new tuples and never touch the store; save_admin()
validates and then commits the edited state in one step. Totals are always
recomputed from categories on save.

The admin form works on a copy of the state. After a "sync now" from the
form, rebase that copy with sync_form() so a later save does not write
the pre-sync snapshot back over the synced data.
"""

import base64
import logging
from dataclasses import replace

from .config import DATA_SOURCES, DEFAULT_COLOR, MAX_LOGO_BYTES
from .errors import ValidationError
from .models import Category, DashboardState, as_count
from .store import DashboardStore, now_stamp
from .sync import SyncOrchestrator

logger = logging.getLogger(__name__)

_NUMERIC_FIELDS = {"collected", "target", "muzaki"}
_EDITABLE_FIELDS = _NUMERIC_FIELDS | {"name", "color"}

# Form fields a sync never touches; kept from the working copy on rebase
_FORM_ONLY_FIELDS = ("institution_name", "period_year", "institution_logo")


def verify_pin(state: DashboardState, pin: str) -> bool:
    """Verbatim comparison against the stored admin PIN."""
    ok = pin == state.admin_pin
    if not ok:
        logger.warning("Admin PIN rejected")
    return ok


def add_category(
    categories,
    name: str,
    target: int = 0,
    color: str = DEFAULT_COLOR,
) -> tuple[Category, ...]:
    """Append a new category with nothing collected yet."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Nama kategori harus diisi")
    if any(c.name == name for c in categories):
        raise ValidationError(f"Kategori '{name}' sudah ada")
    new = Category(name=name, target=as_count(target), color=color or DEFAULT_COLOR)
    return tuple(categories) + (new,)


def update_category(categories, index: int, field: str, value) -> tuple[Category, ...]:
    """Set one field of the category at `index`.

    Numeric fields are coerced to a non-negative int; anything
    unparseable becomes 0.
    """
    if field not in _EDITABLE_FIELDS:
        raise ValidationError(f"Unknown category field '{field}'")
    categories = list(categories)
    if field in _NUMERIC_FIELDS:
        value = as_count(value)
    categories[index] = replace(categories[index], **{field: value})
    return tuple(categories)


def remove_category(categories, index: int) -> tuple[Category, ...]:
    return tuple(c for i, c in enumerate(categories) if i != index)


def encode_logo(data: bytes, mime_type: str) -> str:
    """Turn an uploaded image into the data URL stored as institution_logo.

    Raises ValidationError for non-images and files over 2 MB.
    """
    if not (mime_type or "").startswith("image/"):
        raise ValidationError("File logo harus berupa gambar")
    if len(data) > MAX_LOGO_BYTES:
        raise ValidationError("Ukuran file terlalu besar. Maksimum 2MB.")
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_logo(data_url: str) -> bytes | None:
    """Image bytes of a stored logo, or None when there is none."""
    if not data_url or "," not in data_url:
        return None
    try:
        return base64.b64decode(data_url.split(",", 1)[1], validate=True)
    except ValueError:
        logger.warning("Stored institution logo is not valid base64; ignoring it")
        return None


def sync_form(
    orchestrator: SyncOrchestrator,
    edited: DashboardState,
    spreadsheet_id: str,
) -> tuple[bool, DashboardState]:
    """Run a sync from the admin form and rebase the form's working copy.

    Returns (ok, form_state). On success form_state is the freshly synced
    state with the unsaved general settings (name, year, logo) carried
    over; on failure the working copy is returned unchanged.
    """
    if not orchestrator.sync(spreadsheet_id):
        return False, edited
    fresh = orchestrator.store.state
    return True, replace(fresh, **{f: getattr(edited, f) for f in _FORM_ONLY_FIELDS})


def save_admin(
    store: DashboardStore,
    edited: DashboardState,
    new_pin: str | None = None,
    confirm_pin: str | None = None,
    spreadsheet_id: str | None = None,
    data_source: str | None = None,
) -> DashboardState:
    """Validate and commit an admin form submission.

    Parameters
    ----------
    edited : The form's working copy of the state.
    new_pin, confirm_pin : Must match when a new PIN is given.
    spreadsheet_id : Replaces the stored id when given.
    data_source : "manual" or "sheets"; replaces the stored source when given.

    Raises ValidationError before any mutation if the PINs differ, the
    new PIN is empty or the data source is unknown.
    """
    changes: dict = {"last_update": now_stamp()}

    if new_pin is not None or confirm_pin is not None:
        if new_pin != confirm_pin:
            raise ValidationError("PIN Baru dan Konfirmasi PIN tidak cocok!")
        if not new_pin:
            raise ValidationError("PIN tidak boleh kosong")
        changes["admin_pin"] = new_pin

    if data_source is not None:
        if data_source not in DATA_SOURCES:
            raise ValidationError(f"Sumber data tidak dikenal: '{data_source}'")
        changes["data_source"] = data_source

    if spreadsheet_id is not None:
        changes["spreadsheet_id"] = spreadsheet_id.strip()

    state = store.save(replace(edited, **changes))
    logger.info(
        "Admin configuration saved (%d categories, source %s)",
        len(state.categories), state.data_source,
    )
    return state
