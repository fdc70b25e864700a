"""
CSV framing shared by the collection and trade interchange files.

Files are UTF-8 with an optional byte-order mark, RFC-4180 quoting and any
of CR, LF or CRLF line endings. Headers are matched case-insensitively.
"""

import csv
from collections.abc import Iterable
from io import StringIO

from preparea.models.failure import EmptyCsvError, MissingColumnError

BOM = "\ufeff"

# Characters that force a value to be quoted on export
_NEEDS_QUOTING = ('"', ",", "\r", "\n")


def parse_csv_rows(text: str) -> list[list[str]]:
    """Split CSV text into rows of cells."""
    if text.startswith(BOM):
        text = text[len(BOM) :]
    return list(csv.reader(StringIO(text, newline="")))


class CsvHeader:
    """
    Case-insensitive column lookup over a header row.

    When a header repeats, the last occurrence wins.
    """

    def __init__(self, header: list[str]) -> None:
        self.columns = [name.strip() for name in header]
        self._index = {name.lower(): i for i, name in enumerate(self.columns)}

    def find(self, *names: str) -> int | None:
        """Index of the first of `names` present in the header."""
        for name in names:
            index = self._index.get(name.lower())
            if index is not None:
                return index
        return None

    def require(self, name: str) -> int:
        index = self.find(name)
        if index is None:
            raise MissingColumnError(name)
        return index


def split_header(text: str) -> tuple[CsvHeader, list[list[str]]]:
    """
    Parse CSV text into its header and data rows.

    Raises:
        EmptyCsvError: If the text holds no rows at all
    """
    rows = parse_csv_rows(text)
    if not rows:
        raise EmptyCsvError()
    return CsvHeader(rows[0]), rows[1:]


def cell(row: list[str], index: int | None) -> str:
    """Trimmed cell value; missing columns and short rows read as blank."""
    if index is None or index >= len(row):
        return ""
    return (row[index] or "").strip()


def quote_all(value: object) -> str:
    return '"' + str(value).replace('"', '""') + '"'


def quote_if_needed(value: object) -> str:
    text = "" if value is None else str(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def join_rows(rows: Iterable[Iterable[str]]) -> str:
    """Join already-escaped cells into CRLF-separated CSV text."""
    return "\r\n".join(",".join(row) for row in rows)
