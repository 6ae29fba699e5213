"""Google Sheets CSV export client."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import requests

from .config import HTTP_TIMEOUT_SECONDS, SHEET_NAMES, SHEETS_EXPORT_URL
from .errors import SheetFetchError

logger = logging.getLogger(__name__)


class SheetsClient:
    """Fetch sheets of a public spreadsheet as CSV text.

    The spreadsheet must be shared as "anyone with the link can view";
    no credentials are sent.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout

    def export_url(self, spreadsheet_id: str, sheet: str) -> str:
        return SHEETS_EXPORT_URL.format(spreadsheet_id=spreadsheet_id, sheet=sheet)

    def fetch_sheet(self, spreadsheet_id: str, sheet: str) -> str:
        """Return one sheet's CSV text. Raises SheetFetchError on any failure."""
        url = self.export_url(spreadsheet_id, sheet)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise SheetFetchError(sheet, reason=str(e)) from e

        if not response.ok:
            raise SheetFetchError(sheet, status=response.status_code)
        return response.text

    def fetch_all(
        self,
        spreadsheet_id: str,
        sheets: tuple[str, ...] = SHEET_NAMES,
    ) -> dict[str, str]:
        """Fetch several sheets concurrently.

        Either every sheet succeeds and a {sheet: csv_text} dict is returned,
        or the first failure is raised as SheetFetchError.
        """
        with ThreadPoolExecutor(max_workers=len(sheets)) as pool:
            futures = {
                sheet: pool.submit(self.fetch_sheet, spreadsheet_id, sheet)
                for sheet in sheets
            }
            result = {sheet: future.result() for sheet, future in futures.items()}

        logger.info(
            "Fetched %d sheets from spreadsheet %s (%s bytes)",
            len(result), spreadsheet_id, sum(len(t) for t in result.values()),
        )
        return result
