"""
errors - Failure taxonomy of an import run.

Every error carries a machine-readable ``kind`` tag plus the structured
fields callers branch on; ``str(exc)`` is the sentence shown to users.
All of them are terminal for the import that raised them.
"""

from __future__ import annotations

from typing import Optional


class ImportEngineError(Exception):
    """Base class for every failure the engine reports."""

    kind = "import"

    def __init__(self, message: str, *, row: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.row = row

    def to_dict(self) -> dict:
        d = {"kind": self.kind, "message": self.message}
        if self.row is not None:
            d["row"] = self.row
        return d


class ConfigError(ImportEngineError):
    """Missing or invalid parameters, detected before any I/O."""
    kind = "config"


class DBConnectionError(ImportEngineError):
    """Opening the connection or the liveness check failed."""
    kind = "connection"


class CatalogQueryError(ImportEngineError):
    """The catalog query for the target table raised."""
    kind = "catalog_query"


class TableNotFoundError(ImportEngineError):
    """
    The catalog returned no columns.  Covers both a missing table and
    a table the current user may not see; the two are indistinguishable.
    """
    kind = "table_not_found_or_empty"

    def __init__(self, table: str):
        super().__init__(
            f"Table [{table}] does not exist, is not accessible "
            f"or has no columns"
        )
        self.table = table

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["table"] = self.table
        return d


class UnmatchedColumnsError(ImportEngineError):
    """Some table columns have no header in the source."""
    kind = "unmatched_columns"

    def __init__(self, columns: list[str]):
        super().__init__(
            f"Field matching failed: {len(columns)} required "
            f"column(s) missing from the source ({', '.join(columns)})"
        )
        self.columns = list(columns)

    @property
    def count(self) -> int:
        return len(self.columns)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["count"] = self.count
        d["columns"] = self.columns
        return d


class SourceReadError(ImportEngineError):
    """The source file could not be decoded into a grid."""
    kind = "source_read"


class DateFormatError(ImportEngineError):
    """A date cell matched none of the accepted formats."""
    kind = "date_format"

    def __init__(self, row: int, value: str):
        super().__init__(f"Row {row}: unrecognised date format: {value}", row=row)
        self.value = value

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["value"] = self.value
        return d


class RowInsertError(ImportEngineError):
    """
    Row isolation located the first row the database rejects.

    ``committed_rows`` counts the rows of the same batch that were
    inserted one by one before the failing row.
    """
    kind = "row_insert"

    def __init__(self, row: int, db_message: str, committed_rows: int = 0):
        super().__init__(f"Database insert failed (row {row}): {db_message}", row=row)
        self.db_message = db_message
        self.committed_rows = committed_rows

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["db_message"] = self.db_message
        d["committed_rows"] = self.committed_rows
        return d


class BulkAnomalyError(ImportEngineError):
    """
    The bulk statement failed but every row succeeded on its own.
    The batch is not accepted; the original bulk error is reported.
    """
    kind = "bulk_anomaly"

    def __init__(self, db_message: str, committed_rows: int = 0):
        super().__init__(
            f"Bulk insert failed but no single row could be blamed: {db_message}"
        )
        self.db_message = db_message
        self.committed_rows = committed_rows

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["db_message"] = self.db_message
        d["committed_rows"] = self.committed_rows
        return d
