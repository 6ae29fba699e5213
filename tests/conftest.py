from types import SimpleNamespace

import pytest

from zakat_dashboard.models import Category, DailyEntry, DashboardState, HistoryPoint
from zakat_dashboard.store import DashboardStore, JsonFileStorage

CATEGORIES_CSV = """\
"Name","Collected","Target","Muzaki","Color"
"UPZ","Rp 1.000.000","2.000.000","5","#059669"
"Desa, Komunitas","500000","1000000","3",""
"","","","",""
"""

HISTORY_CSV = """\
"Bulan","Tanggal","Amount","Kategori"
"Jan","2025-01-01","100","UPZ"
"Jan","2025-01-01","50","Desa, Komunitas"
"Feb","2025-02-01","70","UPZ"
"""

DAILY_CSV = """\
"Tanggal","Amount","Kategori"
"2025-01-05","1000","UPZ"
"2025-01-12","2500","Desa, Komunitas"
"2025-02-02","400",""
"""

SHEET_TEXTS = {
    "Categories": CATEGORIES_CSV,
    "History": HISTORY_CSV,
    "Daily": DAILY_CSV,
}


class FakeSession:
    """Stands in for requests.Session; answers by the sheet= query value."""

    def __init__(self, texts=None, status=None, probe=None):
        self.texts = dict(SHEET_TEXTS if texts is None else texts)
        self.status = status or {}
        self.probe = probe
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        if self.probe is not None:
            self.probe()
        sheet = url.rsplit("sheet=", 1)[-1]
        code = self.status.get(sheet, 200)
        return SimpleNamespace(
            ok=200 <= code < 300,
            status_code=code,
            text=self.texts.get(sheet, ""),
        )


@pytest.fixture
def storage(tmp_path):
    return JsonFileStorage(tmp_path / "state.json")


@pytest.fixture
def manual_state():
    state = DashboardState(
        institution_name="BAZNAS Test",
        period_year="2025",
        monthly_history=(
            HistoryPoint("Jan", "2025-01-01", 10, "A"),
            HistoryPoint("Jan", "2025-01-01", 5, "B"),
        ),
        daily_history=(
            DailyEntry("2024-12-31", 7, "31 Des", "A"),
            DailyEntry("2025-01-15", 3, "15 Jan", "B"),
        ),
        last_update="2025-01-01",
        admin_pin="1234",
    )
    return state.with_categories([
        Category("A", collected=100, target=200, muzaki=4),
        Category("B", collected=50, target=100, muzaki=2),
    ])


@pytest.fixture
def store(storage, manual_state):
    return DashboardStore(storage, manual_state)
