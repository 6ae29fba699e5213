"""
Normalisers: map raw CSV records from the Categories, History and Daily
sheets onto typed dashboard records.

Column names may be English or Indonesian (name/nama, date/tanggal, ...);
see config.FIELD_ALIASES. Missing or malformed cells fall back to
placeholders and never raise.
"""

import logging

from ..config import DEFAULT_COLOR, GENERAL_CATEGORY, UNKNOWN_LABEL, UNNAMED_CATEGORY
from ..models import Category, DailyEntry, HistoryPoint
from .utils import coerce_int, format_day_label, resolve_field

logger = logging.getLogger(__name__)


def normalize_category(record: dict) -> Category:
    """Build a Category from one Categories-sheet row."""
    return Category(
        name=resolve_field(record, "name") or UNNAMED_CATEGORY,
        collected=coerce_int(resolve_field(record, "collected")),
        target=coerce_int(resolve_field(record, "target")),
        muzaki=coerce_int(resolve_field(record, "muzaki")),
        color=resolve_field(record, "color") or DEFAULT_COLOR,
    )


def normalize_categories(records: list[dict]) -> list[Category]:
    """Normalise Categories-sheet rows.

    Rows without a name are structurally empty sheet rows and are dropped.
    """
    categories = [normalize_category(r) for r in records]
    kept = [c for c in categories if c.name != UNNAMED_CATEGORY]

    dropped = len(categories) - len(kept)
    if dropped:
        logger.warning("Dropped %d unnamed category rows", dropped)
    logger.info("Normalised %d categories", len(kept))
    return kept


def normalize_history(records: list[dict]) -> list[HistoryPoint]:
    """Normalise History-sheet rows into HistoryPoints."""
    history = [
        HistoryPoint(
            month=resolve_field(r, "month") or UNKNOWN_LABEL,
            date=resolve_field(r, "date") or "",
            amount=coerce_int(resolve_field(r, "amount")),
            category=resolve_field(r, "category") or GENERAL_CATEGORY,
        )
        for r in records
    ]
    logger.info("Normalised %d history rows", len(history))
    return history


def normalize_daily(records: list[dict]) -> list[DailyEntry]:
    """Normalise Daily-sheet rows into DailyEntries.

    The label is the resolved date as 'DD Mon', or '?' when the date is
    missing or unparseable.
    """
    daily = []
    for r in records:
        date = resolve_field(r, "date") or ""
        daily.append(DailyEntry(
            date=date,
            amount=coerce_int(resolve_field(r, "amount")),
            label=format_day_label(date) if date else UNKNOWN_LABEL,
            category=resolve_field(r, "category") or GENERAL_CATEGORY,
        ))
    logger.info("Normalised %d daily rows", len(daily))
    return daily
