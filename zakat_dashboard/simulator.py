"""
Built-in default state for a first run with no stored data.

Categories and monthly history are fixed sample figures. The daily series
is synthetic: random amounts for the last few weeks ending today.
"""

from datetime import date, timedelta

import numpy as np

from .config import (
    DATA_SOURCE_MANUAL,
    DEFAULT_ADMIN_PIN,
    INSTITUTION_NAME,
)
from .loaders.utils import format_day_label
from .models import Category, DailyEntry, DashboardState, HistoryPoint

# ---------------------------------------------------------------------------
# Sample figures
# ---------------------------------------------------------------------------
_CATEGORIES = [
    ("UPZ (Unit Pengumpul Zakat)", 15_200_000_000, 18_000_000_000, 5240, "#059669"),
    ("Desa & Komunitas", 7_800_000_000, 10_000_000_000, 4120, "#0891b2"),
    ("Program Muzaki", 4_500_000_000, 7_000_000_000, 2850, "#4f46e5"),
    ("Retail Korporasi", 2_950_000_000, 5_000_000_000, 1240, "#d97706"),
    ("Digital Fundraising", 2_000_000_000, 5_000_000_000, 830, "#db2777"),
]

_MONTHLY = [
    ("Jan", "2024-01-01", 2_100_000_000),
    ("Feb", "2024-02-01", 2_400_000_000),
    ("Mar", "2024-03-01", 5_800_000_000),
    ("Apr", "2024-04-01", 8_200_000_000),
    ("Mei", "2024-05-01", 4_100_000_000),
    ("Jun", "2024-06-01", 3_500_000_000),
    ("Jul", "2024-07-01", 2_800_000_000),
    ("Agt", "2024-08-01", 3_450_000_000),
]

# Daily amounts are drawn from [low, high)
_DAILY_LOW = 10_000_000
_DAILY_HIGH = 60_000_000


def generate_daily_history(
    days: int = 21,
    today: date | None = None,
    seed: int | None = None,
) -> list[DailyEntry]:
    """Generate `days` daily entries ending today, oldest first."""
    rng = np.random.default_rng(seed)
    today = today or date.today()
    amounts = rng.integers(_DAILY_LOW, _DAILY_HIGH, size=days)

    entries = []
    for offset, amount in zip(range(days - 1, -1, -1), amounts):
        day = (today - timedelta(days=offset)).isoformat()
        entries.append(DailyEntry(date=day, amount=int(amount), label=format_day_label(day)))
    return entries


def default_state(today: date | None = None, seed: int | None = None) -> DashboardState:
    """State used when storage holds nothing."""
    today = today or date.today()
    categories = [
        Category(name=name, collected=collected, target=target, muzaki=muzaki, color=color)
        for name, collected, target, muzaki, color in _CATEGORIES
    ]
    state = DashboardState(
        institution_name=INSTITUTION_NAME,
        period_year="2024",
        monthly_history=tuple(
            HistoryPoint(month=m, date=d, amount=a) for m, d, a in _MONTHLY
        ),
        daily_history=tuple(generate_daily_history(today=today, seed=seed)),
        last_update=today.isoformat(),
        data_source=DATA_SOURCE_MANUAL,
        spreadsheet_id="",
        admin_pin=DEFAULT_ADMIN_PIN,
    )
    return state.with_categories(categories)
