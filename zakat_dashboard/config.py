"""
Configuration: storage paths, sheet names, field aliases, constants.

FIELD_ALIASES maps each canonical record field to the ordered list of
source column names accepted for it. The first alias present with a
non-empty value wins.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Storage: one JSON slot holding the full dashboard state
# ---------------------------------------------------------------------------
DATA_DIR = Path(os.getenv("ZAKAT_DATA_DIR", Path.home() / ".zakat_dashboard"))

STORAGE_KEY = "baznas_tasik_data"
STORAGE_FILE = DATA_DIR / f"{STORAGE_KEY}.json"

# ---------------------------------------------------------------------------
# Spreadsheet source
# ---------------------------------------------------------------------------
SHEETS_EXPORT_URL = (
    "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/gviz/tq"
    "?tqx=out:csv&sheet={sheet}"
)

SHEET_CATEGORIES = "Categories"
SHEET_HISTORY = "History"
SHEET_DAILY = "Daily"
SHEET_NAMES = (SHEET_CATEGORIES, SHEET_HISTORY, SHEET_DAILY)

HTTP_TIMEOUT_SECONDS = 15

# Auto-sync polling interval
SYNC_INTERVAL_SECONDS = float(os.getenv("ZAKAT_SYNC_INTERVAL", "60"))

# ---------------------------------------------------------------------------
# Sentinels and placeholders
# ---------------------------------------------------------------------------
ALL_CATEGORIES = "Semua Kategori"

UNNAMED_CATEGORY = "Tanpa Nama"
GENERAL_CATEGORY = "Umum"
UNKNOWN_LABEL = "?"

DEFAULT_COLOR = "#10b981"

DATA_SOURCE_MANUAL = "manual"
DATA_SOURCE_SHEETS = "sheets"
DATA_SOURCES = (DATA_SOURCE_MANUAL, DATA_SOURCE_SHEETS)

# Uploaded institution logos are stored inline as data URLs
MAX_LOGO_BYTES = 2 * 1024 * 1024

# ---------------------------------------------------------------------------
# Field alias registry
# ---------------------------------------------------------------------------
# Keys are canonical field names; values are lower-cased source headers,
# tried in order.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("name", "nama", "category", "kategori"),
    "collected": ("collected", "terhimpun"),
    "target": ("target",),
    "muzaki": ("muzaki",),
    "color": ("color", "warna"),
    "month": ("month", "bulan"),
    "date": ("date", "tanggal"),
    "amount": ("amount", "jumlah"),
    "category": ("category", "kategori"),
}

# Short month names used for daily labels ("05 Jan", "17 Agu")
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
)

# ---------------------------------------------------------------------------
# Generative text service
# ---------------------------------------------------------------------------
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# ---------------------------------------------------------------------------
# Institution defaults
# ---------------------------------------------------------------------------
INSTITUTION_NAME = "BAZNAS Kabupaten Tasikmalaya"
DEFAULT_ADMIN_PIN = "1234"
