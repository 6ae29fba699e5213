"""
Dashboard records and the aggregate-root state snapshot.

All records are frozen dataclasses. State changes go through
dataclasses.replace(), so every mutation yields a new snapshot and
readers never see a half-applied update.

Serialisation keeps the camelCase keys of the stored JSON slot
(institutionName, monthlyHistory, ...) so existing storage stays readable.
"""

from dataclasses import dataclass, field, replace
from typing import Any

from .config import DATA_SOURCE_MANUAL, DEFAULT_COLOR


def as_count(val: Any) -> int:
    """Non-negative int from a stored or edited cell; anything unparseable is 0.

    Floats (e.g. 1500.0 from a data editor) are truncated.
    """
    try:
        n = int(val)
    except (TypeError, ValueError):
        try:
            n = int(float(val))
        except (TypeError, ValueError, OverflowError):
            return 0
    except OverflowError:
        return 0
    return max(0, n)


@dataclass(frozen=True)
class Category:
    name: str
    collected: int = 0
    target: int = 0
    muzaki: int = 0
    color: str = DEFAULT_COLOR

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "collected": self.collected,
            "target": self.target,
            "muzaki": self.muzaki,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "Category":
        return cls(
            name=str(raw.get("name", "")),
            collected=as_count(raw.get("collected")),
            target=as_count(raw.get("target")),
            muzaki=as_count(raw.get("muzaki")),
            color=raw.get("color") or DEFAULT_COLOR,
        )


@dataclass(frozen=True)
class HistoryPoint:
    """One aggregation period's total. category None means institution-wide."""

    month: str
    date: str
    amount: int = 0
    category: str | None = None

    def to_dict(self) -> dict:
        out = {"month": self.month, "date": self.date, "amount": self.amount}
        if self.category is not None:
            out["category"] = self.category
        return out

    @classmethod
    def from_dict(cls, raw: dict) -> "HistoryPoint":
        return cls(
            month=str(raw.get("month", "")),
            date=str(raw.get("date", "")),
            amount=as_count(raw.get("amount")),
            category=raw.get("category"),
        )


@dataclass(frozen=True)
class DailyEntry:
    date: str
    amount: int = 0
    label: str = ""
    category: str | None = None

    def to_dict(self) -> dict:
        out = {"date": self.date, "amount": self.amount, "label": self.label}
        if self.category is not None:
            out["category"] = self.category
        return out

    @classmethod
    def from_dict(cls, raw: dict) -> "DailyEntry":
        return cls(
            date=str(raw.get("date", "")),
            amount=as_count(raw.get("amount")),
            label=str(raw.get("label", "")),
            category=raw.get("category"),
        )


@dataclass(frozen=True)
class PredictionPoint:
    month: str
    amount: int
    type: str  # "actual" or "predicted"

    def to_dict(self) -> dict:
        return {"month": self.month, "amount": self.amount, "type": self.type}


@dataclass(frozen=True)
class DashboardState:
    """Aggregate root: everything the dashboard persists.

    total_target / total_collected / total_muzaki are derived from
    categories; use with_categories() rather than setting them directly.
    """

    institution_name: str
    period_year: str
    categories: tuple[Category, ...] = ()
    monthly_history: tuple[HistoryPoint, ...] = ()
    daily_history: tuple[DailyEntry, ...] = ()
    total_target: int = 0
    total_collected: int = 0
    total_muzaki: int = 0
    last_update: str = ""
    data_source: str = DATA_SOURCE_MANUAL
    spreadsheet_id: str = ""
    admin_pin: str = ""
    institution_logo: str = ""
    extra: dict = field(default_factory=dict, compare=False)

    def with_categories(self, categories) -> "DashboardState":
        """Replace categories and recompute the three totals from them."""
        from .aggregates import compute_totals

        categories = tuple(categories)
        totals = compute_totals(categories)
        return replace(
            self,
            categories=categories,
            total_collected=totals["collected"],
            total_target=totals["target"],
            total_muzaki=totals["muzaki"],
        )

    def category_names(self) -> list[str]:
        return [c.name for c in self.categories]

    def to_dict(self) -> dict:
        out = dict(self.extra)
        out.update({
            "institutionName": self.institution_name,
            "institutionLogo": self.institution_logo,
            "periodYear": self.period_year,
            "totalTarget": self.total_target,
            "totalCollected": self.total_collected,
            "totalMuzaki": self.total_muzaki,
            "categories": [c.to_dict() for c in self.categories],
            "monthlyHistory": [h.to_dict() for h in self.monthly_history],
            "dailyHistory": [d.to_dict() for d in self.daily_history],
            "lastUpdate": self.last_update,
            "spreadsheetId": self.spreadsheet_id,
            "dataSource": self.data_source,
            "adminPin": self.admin_pin,
        })
        return out

    @classmethod
    def from_dict(cls, raw: dict) -> "DashboardState":
        known = {
            "institutionName", "institutionLogo", "periodYear", "totalTarget",
            "totalCollected", "totalMuzaki", "categories", "monthlyHistory",
            "dailyHistory", "lastUpdate", "spreadsheetId", "dataSource", "adminPin",
        }
        return cls(
            institution_name=str(raw.get("institutionName", "")),
            institution_logo=raw.get("institutionLogo") or "",
            period_year=str(raw.get("periodYear", "")),
            total_target=as_count(raw.get("totalTarget")),
            total_collected=as_count(raw.get("totalCollected")),
            total_muzaki=as_count(raw.get("totalMuzaki")),
            categories=tuple(Category.from_dict(c) for c in raw.get("categories") or []),
            monthly_history=tuple(
                HistoryPoint.from_dict(h) for h in raw.get("monthlyHistory") or []
            ),
            daily_history=tuple(
                DailyEntry.from_dict(d) for d in raw.get("dailyHistory") or []
            ),
            last_update=str(raw.get("lastUpdate", "")),
            spreadsheet_id=raw.get("spreadsheetId") or "",
            data_source=raw.get("dataSource") or DATA_SOURCE_MANUAL,
            admin_pin=str(raw.get("adminPin", "")),
            extra={k: v for k, v in raw.items() if k not in known},
        )
