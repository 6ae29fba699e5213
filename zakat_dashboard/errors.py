"""Exceptions raised by the dashboard data layer."""


class DashboardError(Exception):
    """Base class for all dashboard errors."""


class SheetFetchError(DashboardError):
    """One of the spreadsheet exports could not be fetched."""

    def __init__(self, sheet: str, status: int | None = None, reason: str = ""):
        self.sheet = sheet
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else reason or "transport error"
        super().__init__(f"Failed to fetch sheet '{sheet}': {detail}")


class ValidationError(DashboardError):
    """Admin input rejected before any state mutation."""
