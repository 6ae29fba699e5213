"""
Shared utilities for sheet ingestion: alias resolution, integer coercion,
date normalisation, day labels.
"""

import logging
import re
from typing import Any

import pandas as pd

from ..config import FIELD_ALIASES, MONTH_ABBREVIATIONS, UNKNOWN_LABEL

logger = logging.getLogger(__name__)

_NON_DIGIT_RE = re.compile(r"[^\d]")


def resolve_field(record: dict, field: str) -> str | None:
    """Return the first non-empty value among the aliases of `field`.

    Aliases come from config.FIELD_ALIASES and are tried in order. A field
    with no registered aliases is looked up under its own name.
    """
    for alias in FIELD_ALIASES.get(field, (field,)):
        val = record.get(alias)
        if val is not None and str(val) != "":
            return str(val)
    return None


def coerce_int(val: Any) -> int:
    """Strip every non-digit character and parse what remains.

    "Rp 1.000.000" -> 1000000. Missing or digit-free values give 0.
    """
    if val is None:
        return 0
    digits = _NON_DIGIT_RE.sub("", str(val))
    if not digits:
        return 0
    return int(digits)


def normalise_date(val: Any) -> pd.Timestamp | None:
    """Convert a sheet date cell to pd.Timestamp.

    Returns None for empty or unparseable values.
    """
    if val is None or str(val).strip() == "":
        return None
    if isinstance(val, pd.Timestamp):
        return val
    try:
        ts = pd.Timestamp(str(val).strip())
    except (ValueError, TypeError, OverflowError):
        logger.warning("Could not parse date value: %s", val)
        return None
    if pd.isna(ts):
        return None
    return ts


def format_day_label(val: Any) -> str:
    """Short day/month label, e.g. '2025-08-17' -> '17 Agu'.

    Returns '?' when the date cannot be resolved.
    """
    ts = normalise_date(val)
    if ts is None:
        return UNKNOWN_LABEL
    return f"{ts.day:02d} {MONTH_ABBREVIATIONS[ts.month - 1]}"
