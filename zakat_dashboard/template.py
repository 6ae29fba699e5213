"""
Excel template for the spreadsheet source.

The workbook has the three tabs the sync reads (Categories, History,
Daily) plus an Instructions tab. Categories and History compute their
amounts from Daily with SUMIF/SUMIFS formulas, so an operator only types
daily transactions.

Daily column layout (A-F):
    Date | Amount | Category | Muzaki Name | Muzaki Count (Jiwa) | Description
"""

import logging
from pathlib import Path

import openpyxl
from openpyxl.styles import Font

from .config import SHEET_CATEGORIES, SHEET_DAILY, SHEET_HISTORY, ALL_CATEGORIES

logger = logging.getLogger(__name__)

# Formulas look this far down the Daily tab
_DAILY_LAST_ROW = 10000

_MONTH_NAMES = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)

_TEMPLATE_CATEGORIES = [
    ("UPZ (Unit Pengumpul Zakat)", 18_000_000_000, "#059669"),
    ("Desa & Komunitas", 10_000_000_000, "#0891b2"),
    ("Program Muzaki", 7_000_000_000, "#4f46e5"),
    ("Retail Korporasi", 5_000_000_000, "#d97706"),
    ("Digital Fundraising", 5_000_000_000, "#db2777"),
]

_SAMPLE_DAILY = [
    ("01-05", 2_500_000, "UPZ (Unit Pengumpul Zakat)", "UPZ Masjid Al-Ikhlas", 1, "Zakat Mal Pengurus"),
    ("01-12", 5_000_000, "Digital Fundraising", "Donatur Web", 1, "Sedekah Online via QRIS"),
    ("01-20", 15_000_000, "Retail Korporasi", "PT. Tasik Jaya", 1, "Zakat Perusahaan"),
    ("02-02", 750_000, "Desa & Komunitas", "H. Maimun", 1, "Infaq Jum'at"),
    ("02-14", 3_200_000, "Program Muzaki", "Ibu Ratna", 4, "Fidyah Sekeluarga"),
    ("02-28", 10_000_000, "UPZ (Unit Pengumpul Zakat)", "UPZ Kec. Singaparna", 25, "Laporan Bulanan UPZ"),
]

_HEADERS = {
    SHEET_CATEGORIES: ["Name", "Collected", "Target", "Muzaki", "Color"],
    SHEET_HISTORY: ["Month", "Date", "Amount", "Category"],
    SHEET_DAILY: ["Date", "Amount", "Category", "Muzaki Name", "Muzaki Count (Jiwa)", "Description"],
}


def _instructions(year: int) -> list[str]:
    return [
        f"PANDUAN PENGISIAN DATA DASHBOARD BAZNAS {year}",
        "",
        "A. STRUKTUR TAB",
        "1. 'Daily': Masukkan rincian transaksi harian di sini. Ini adalah SUMBER UTAMA data.",
        "2. 'Categories': Daftar kategori & target tahunan. 'Collected' & 'Muzaki' terhitung otomatis.",
        "3. 'History': Daftar bulan untuk grafik tren. 'Amount' terhitung otomatis.",
        "",
        "B. CARA PENGGUNAAN",
        "1. Upload file ini ke Google Drive dan buka sebagai Google Sheets.",
        "2. Masukkan ID Spreadsheet ke Panel Admin Dashboard.",
        "3. Pastikan format TANGGAL pada kolom 'Date' adalah YYYY-MM-DD.",
        "4. Jangan mengubah nama Tab (Daily, Categories, History) agar sinkronisasi tidak error.",
        "",
        "C. TIPS",
        "- Isi kolom 'Category' di tab 'Daily' sama persis dengan nama di tab 'Categories'.",
        "- Untuk Muzaki Count, isi jumlah jiwa (misal Zakat Fitrah 1 keluarga isi 5).",
    ]


def _write_header(ws, headers: list[str]) -> None:
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)


def build_template_workbook(year: int = 2025) -> openpyxl.Workbook:
    """Build the four-tab template workbook for `year`."""
    wb = openpyxl.Workbook()

    ws = wb.active
    ws.title = "Instructions"
    for line in _instructions(year):
        ws.append([line])
    ws["A1"].font = Font(bold=True, size=14)

    daily_a = f"Daily!$A$2:$A${_DAILY_LAST_ROW}"
    daily_b = f"Daily!$B$2:$B${_DAILY_LAST_ROW}"
    daily_c = f"Daily!$C$2:$C${_DAILY_LAST_ROW}"
    daily_e = f"Daily!$E$2:$E${_DAILY_LAST_ROW}"

    ws = wb.create_sheet(SHEET_CATEGORIES)
    _write_header(ws, _HEADERS[SHEET_CATEGORIES])
    for row_idx, (name, target, color) in enumerate(_TEMPLATE_CATEGORIES, start=2):
        ws.append([
            name,
            f"=SUMIF({daily_c}, A{row_idx}, {daily_b})",
            target,
            f"=SUMIF({daily_c}, A{row_idx}, {daily_e})",
            color,
        ])

    ws = wb.create_sheet(SHEET_HISTORY)
    _write_header(ws, _HEADERS[SHEET_HISTORY])
    for row_idx, month_name in enumerate(_MONTH_NAMES, start=2):
        month_num = row_idx - 1
        ws.append([
            month_name,
            f"{year}-{month_num:02d}-01",
            f'=SUMIFS({daily_b}, {daily_a}, ">="&B{row_idx}, {daily_a}, "<"&EDATE(B{row_idx}, 1))',
            ALL_CATEGORIES,
        ])

    ws = wb.create_sheet(SHEET_DAILY)
    _write_header(ws, _HEADERS[SHEET_DAILY])
    for month_day, amount, category, muzaki_name, count, description in _SAMPLE_DAILY:
        ws.append([f"{year}-{month_day}", amount, category, muzaki_name, count, description])

    return wb


def template_filename(institution_name: str, year: int = 2025) -> str:
    """e.g. 'Template_BAZNAS_2025_BAZNAS_Kabupaten_Tasikmalaya.xlsx'."""
    return f"Template_BAZNAS_{year}_{'_'.join(institution_name.split())}.xlsx"


def write_template(path: str | Path, year: int = 2025) -> Path:
    """Save the template workbook to `path` and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb = build_template_workbook(year)
    wb.save(path)
    wb.close()
    logger.info("Wrote spreadsheet template to %s", path)
    return path
