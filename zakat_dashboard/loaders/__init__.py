"""Sheet ingestion: CSV parsing and record normalisation."""

from .csv_records import parse_csv_records
from .normalize import normalize_categories, normalize_history, normalize_daily
from .normalize import normalize_category

__all__ = [
    "parse_csv_records",
    "normalize_categories",
    "normalize_category",
    "normalize_history",
    "normalize_daily",
]
