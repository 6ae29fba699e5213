"""
Aggregation functions — pure functions with no side effects.

Provides institution-wide totals, history consolidation across
categories, and target-achievement percentages. All arithmetic is on
integers; nothing is rounded until percentage_achieved().
"""

import logging
from typing import Iterable

import pandas as pd

from .config import ALL_CATEGORIES
from .models import Category, HistoryPoint

logger = logging.getLogger(__name__)


def compute_totals(categories: Iterable[Category]) -> dict[str, int]:
    """Return {"collected", "target", "muzaki"} summed over categories."""
    totals = {"collected": 0, "target": 0, "muzaki": 0}
    for cat in categories:
        totals["collected"] += cat.collected
        totals["target"] += cat.target
        totals["muzaki"] += cat.muzaki
    return totals


def percentage_achieved(collected: int, target: int) -> int:
    """Return round(100 * collected / target) clamped to [0, 100].

    Halves round up. target <= 0 gives 0.
    """
    if target <= 0:
        return 0
    # integer half-up rounding of 100 * collected / target
    pct = (200 * collected + target) // (2 * target)
    return max(0, min(100, pct))


def aggregate_history(
    records: Iterable[HistoryPoint],
    selected_category: str = ALL_CATEGORIES,
) -> list[HistoryPoint]:
    """Consolidate a history series for the selected category.

    Rules
    -----
    - selected_category == ALL_CATEGORIES:
        rows sharing (month, date) are summed into one institution-wide
        point (category None). A sheet that logs history per category
        becomes one combined series.
    - otherwise:
        only that category's rows are kept, unchanged.

    Output is sorted ascending by date; ties keep their input order.
    Re-aggregating an aggregated series returns it unchanged.
    """
    records = list(records)
    if not records:
        return []

    if selected_category != ALL_CATEGORIES:
        kept = [h for h in records if h.category == selected_category]
        return sorted(kept, key=lambda h: h.date)

    df = pd.DataFrame([h.to_dict() for h in records], columns=["month", "date", "amount"])
    grouped = (
        df.groupby(["month", "date"], sort=False, as_index=False)["amount"]
        .sum()
        .sort_values("date", kind="stable")
    )

    result = [
        HistoryPoint(month=str(row.month), date=str(row.date), amount=int(row.amount))
        for row in grouped.itertuples(index=False)
    ]
    if len(result) < len(records):
        logger.info("Consolidated %d history rows into %d periods", len(records), len(result))
    return result
