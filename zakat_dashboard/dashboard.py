"""
Dashboard-ready output functions.

These are the entry points for the Streamlit front end. Each function is a
pure function of the current state plus the current filter selection and
returns plain dicts or record lists suitable for stat tiles, charts and
tables. Nothing here mutates the persisted state.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

import pandas as pd

from .aggregates import aggregate_history, percentage_achieved
from .config import ALL_CATEGORIES
from .models import DailyEntry, DashboardState, HistoryPoint

logger = logging.getLogger(__name__)

_DEFAULT_WINDOW_DAYS = 365


def _default_start() -> str:
    return (date.today() - timedelta(days=_DEFAULT_WINDOW_DAYS)).isoformat()


def _default_end() -> str:
    return date.today().isoformat()


@dataclass(frozen=True)
class FilterSelection:
    """Local view state: date window plus category. Dates are YYYY-MM-DD."""

    start_date: str = field(default_factory=_default_start)
    end_date: str = field(default_factory=_default_end)
    category: str = ALL_CATEGORIES

    @property
    def is_all_categories(self) -> bool:
        return self.category == ALL_CATEGORIES

    def reset(self) -> "FilterSelection":
        """Back to the last 365 days across all categories."""
        return FilterSelection()


def in_date_range(record_date: str, start_date: str, end_date: str) -> bool:
    return start_date <= record_date <= end_date


def matches_category(record_category: str | None, selected: str) -> bool:
    return selected == ALL_CATEGORIES or record_category == selected


def filter_daily(
    daily_history,
    start_date: str,
    end_date: str,
    selected_category: str = ALL_CATEGORIES,
) -> list[DailyEntry]:
    """Daily entries inside [start_date, end_date] for the selected category."""
    daily = list(daily_history)
    if not daily:
        return []

    df = pd.DataFrame({
        "date": [d.date for d in daily],
        "category": [d.category for d in daily],
    })
    mask = (df["date"] >= start_date) & (df["date"] <= end_date)
    if selected_category != ALL_CATEGORIES:
        mask &= df["category"] == selected_category

    return [d for d, keep in zip(daily, mask.tolist()) if keep]


def filter_monthly(
    monthly_history,
    start_date: str,
    end_date: str,
    selected_category: str = ALL_CATEGORIES,
) -> list[HistoryPoint]:
    """Monthly series inside the date window, consolidated per aggregate_history()."""
    in_window = [
        h for h in monthly_history if in_date_range(h.date, start_date, end_date)
    ]
    return aggregate_history(in_window, selected_category)


def get_stat_totals(state: DashboardState, selected_category: str) -> dict[str, int]:
    """Collected/target/muzaki for the stat tiles.

    All categories uses the institution totals; a single category uses its
    own numbers, or zeros when no category has that name.
    """
    if selected_category == ALL_CATEGORIES:
        return {
            "collected": state.total_collected,
            "target": state.total_target,
            "muzaki": state.total_muzaki,
        }

    for cat in state.categories:
        if cat.name == selected_category:
            return {"collected": cat.collected, "target": cat.target, "muzaki": cat.muzaki}

    logger.warning("Category '%s' not found; showing zero totals", selected_category)
    return {"collected": 0, "target": 0, "muzaki": 0}


def get_filtered_view(state: DashboardState, selection: FilterSelection) -> dict:
    """Single entry point the Streamlit app calls to populate tiles and charts.

    Returns
    -------
    Dict with structure:
    {
        "category": "Semua Kategori",
        "collected": ..., "target": ..., "muzaki": ...,
        "percentage": 72,
        "filtered_collected": ...,   # sum of daily amounts in the window
        "monthly": [HistoryPoint, ...],
        "daily": [DailyEntry, ...],
    }
    """
    totals = get_stat_totals(state, selection.category)
    daily = filter_daily(
        state.daily_history, selection.start_date, selection.end_date, selection.category
    )
    monthly = filter_monthly(
        state.monthly_history, selection.start_date, selection.end_date, selection.category
    )

    return {
        "category": selection.category,
        **totals,
        "percentage": percentage_achieved(totals["collected"], totals["target"]),
        "filtered_collected": sum(d.amount for d in daily),
        "monthly": monthly,
        "daily": daily,
    }


def get_category_breakdown(state: DashboardState) -> pd.DataFrame:
    """Per-category table with achievement percentage and share of total.

    Returns
    -------
    DataFrame with columns:
        name, collected, target, muzaki, color, percentage, share_pct
    """
    columns = ["name", "collected", "target", "muzaki", "color", "percentage", "share_pct"]
    if not state.categories:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame([c.to_dict() for c in state.categories])
    df["percentage"] = [
        percentage_achieved(c.collected, c.target) for c in state.categories
    ]
    total = state.total_collected
    df["share_pct"] = [
        percentage_achieved(c.collected, total) for c in state.categories
    ]
    return df[columns]


def get_available_categories(state: DashboardState) -> list[str]:
    """Category options for the filter dropdown, sentinel first."""
    return [ALL_CATEGORIES] + state.category_names()
