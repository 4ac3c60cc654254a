"""
import_engine.coercer - Turn trimmed text cells into column-native values.

Rules, first match wins (substring match on the declared type):

  • date family      non-empty cell → 'YYYY-MM-DD HH:MM:SS', empty → NULL
  • numeric family   empty cell     → NULL
  • anything else    trimmed text, unchanged

strptime accepts one-digit month, day and hour fields, so "2024-1-5"
and "2024-01-05 1:02:03" parse under the zero-padded formats.

Length truncation is not done here: the insert binder asks the
database to do it, so byte vs. character semantics stay the engine's.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from db.dialects import ColumnDescriptor
from errors import DateFormatError
from import_engine.reconciler import HeaderIndexMap

# Accepted input formats, tried in order.
DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y%m%d",
    "%d-%b-%y",
)
NORMALIZED_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_date(value: str) -> Optional[datetime]:
    """
    Parse ``value`` with the first accepted format that fits.
    Returns None for an empty value, raises ValueError when nothing fits.
    """
    value = (value or "").strip()
    if not value:
        return None
    for fmt in DATE_FORMATS:
        # strptime is lenient about digit counts; the compact form is not
        if fmt == "%Y%m%d" and not (len(value) == 8 and value.isdigit()):
            continue
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"unrecognised date format: {value}")


def coerce(raw: str, column: ColumnDescriptor, row_number: int = 0):
    """
    Coerce one cell for ``column``.
    ``row_number`` (header = 1) is only used in the error raised.
    """
    value = (raw or "").strip()

    if column.is_date:
        if not value:
            return None
        try:
            return parse_date(value).strftime(NORMALIZED_FORMAT)
        except ValueError:
            raise DateFormatError(row_number, value) from None

    if column.is_numeric and not value:
        return None

    return value


class RowCoercer:
    """
    Binds the column list and header map of one import so each source
    row can be turned into an ordered tuple of insert values.
    """

    def __init__(self, columns: Sequence[ColumnDescriptor], index_map: HeaderIndexMap):
        self.columns = list(columns)
        self._indices = [index_map[col.name] for col in self.columns]

    def process(self, row: Sequence[str], row_number: int) -> tuple:
        """Raises DateFormatError on the first bad date cell."""
        values = []
        for col, idx in zip(self.columns, self._indices):
            raw = row[idx] if idx < len(row) else ""
            values.append(coerce(raw, col, row_number))
        return tuple(values)
