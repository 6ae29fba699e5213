import openpyxl

from zakat_dashboard.template import build_template_workbook, template_filename, write_template


def test_workbook_tabs_and_headers():
    wb = build_template_workbook(2026)
    assert wb.sheetnames == ["Instructions", "Categories", "History", "Daily"]

    assert [c.value for c in wb["Categories"][1]] == ["Name", "Collected", "Target", "Muzaki", "Color"]
    assert [c.value for c in wb["History"][1]] == ["Month", "Date", "Amount", "Category"]
    assert wb["Daily"]["A1"].value == "Date"
    assert wb["Daily"]["A1"].font.bold
    assert "2026" in wb["Instructions"]["A1"].value


def test_formulas_reference_daily_tab():
    wb = build_template_workbook(2025)
    categories = wb["Categories"]
    assert categories["B2"].value == "=SUMIF(Daily!$C$2:$C$10000, A2, Daily!$B$2:$B$10000)"
    assert categories["D2"].value == "=SUMIF(Daily!$C$2:$C$10000, A2, Daily!$E$2:$E$10000)"

    history = wb["History"]
    assert history.max_row == 13
    assert history["B2"].value == "2025-01-01"
    assert history["B13"].value == "2025-12-01"
    assert history["C2"].value.startswith("=SUMIFS(")
    assert history["D2"].value == "Semua Kategori"

    daily = wb["Daily"]
    assert daily.max_row == 7
    assert daily["A2"].value == "2025-01-05"


def test_template_filename():
    assert template_filename("BAZNAS Kabupaten  Tasikmalaya", 2025) == (
        "Template_BAZNAS_2025_BAZNAS_Kabupaten_Tasikmalaya.xlsx"
    )


def test_write_template(tmp_path):
    path = write_template(tmp_path / "out" / "template.xlsx", 2025)
    assert path.exists()
    wb = openpyxl.load_workbook(path)
    assert wb.sheetnames == ["Instructions", "Categories", "History", "Daily"]
    assert wb["Categories"]["A2"].value == "UPZ (Unit Pengumpul Zakat)"
