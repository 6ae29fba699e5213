"""
Parser for Google Sheets CSV exports.

The gviz export quotes every cell and never embeds newlines, so a line is a
row. Commas inside a pair of double quotes belong to the cell.
"""

import logging
import re

logger = logging.getLogger(__name__)

# A comma followed by an even number of quotes up to end of line sits
# outside any quoted cell.
_FIELD_SPLIT_RE = re.compile(r',(?=(?:(?:[^"]*"){2})*[^"]*$)')


def split_csv_line(line: str) -> list[str]:
    """Split one line into de-quoted, trimmed cells."""
    return [cell.replace('"', "").strip() for cell in _FIELD_SPLIT_RE.split(line)]


def parse_csv_records(text: str) -> list[dict[str, str | None]]:
    """Parse a CSV blob into a list of header-keyed records.

    Assumptions
    -----------
    - First non-blank line is the header; keys are lower-cased.
    - Blank lines are ignored anywhere in the blob.
    - Rows shorter than the header get None for the missing keys; cells
      beyond the header width are dropped.

    Returns
    -------
    One dict per data row, in sheet order. Header-only or empty input
    gives an empty list.
    """
    lines = [line.strip() for line in (text or "").splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        return []

    headers = [h.lower() for h in split_csv_line(lines[0])]

    records = []
    for line in lines[1:]:
        values = split_csv_line(line)
        record: dict[str, str | None] = {}
        for i, header in enumerate(headers):
            record[header] = values[i] if i < len(values) else None
        records.append(record)

    logger.info("Parsed %d records with headers %s", len(records), headers)
    return records
