"""
import_engine.reconciler - Source header ↔ table column matching.

The target schema is read fresh from the catalog on every import, then
each column is tied to the index of the header carrying its name.
Matching is case-insensitive and ignores surrounding whitespace.  Every
column must be matched before a single row is written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Sequence

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from db.dialects import ColumnDescriptor
from db.engine import DatabaseHandle
from errors import CatalogQueryError, TableNotFoundError, UnmatchedColumnsError

logger = logging.getLogger(__name__)

# column name → zero-based header index
HeaderIndexMap = Mapping[str, int]


def normalize_name(name: str) -> str:
    return (name or "").strip().casefold()


def describe_table(handle: DatabaseHandle, table: str) -> list[ColumnDescriptor]:
    """
    Return the table's columns in physical order.

    Raises TableNotFoundError when the catalog has nothing for the
    name, CatalogQueryError when the catalog query itself fails.
    """
    sql, binds = handle.dialect.describe_table_query(table)
    try:
        with handle.conn.begin():
            rows = handle.conn.execute(text(sql), binds).all()
    except DBAPIError as exc:
        message = str(exc.orig) if exc.orig is not None else str(exc)
        raise CatalogQueryError(f"Querying table structure failed: {message}") from exc

    columns = [
        ColumnDescriptor(
            name=str(name),
            declared_type=str(data_type or "").upper(),
            max_length=max(int(length or 0), 0),
        )
        for name, data_type, length in rows
    ]
    if not columns:
        raise TableNotFoundError(table)

    logger.info(f"Table {table}: {len(columns)} column(s)")
    return columns


def match_headers(
    columns: Sequence[ColumnDescriptor],
    headers: Sequence[str],
) -> HeaderIndexMap:
    """
    Map every column to the first header with the same name.

    Duplicate headers are not detected; the leftmost one wins.
    Raises UnmatchedColumnsError listing every column left without a header.
    """
    normalized = [normalize_name(h) for h in headers]
    mapping: dict[str, int] = {}
    unmatched: list[str] = []

    for col in columns:
        wanted = normalize_name(col.name)
        for idx, header in enumerate(normalized):
            if header == wanted:
                mapping[col.name] = idx
                break
        else:
            unmatched.append(col.name)

    if unmatched:
        logger.warning(f"Unmatched columns: {', '.join(unmatched)}")
        raise UnmatchedColumnsError(unmatched)

    return MappingProxyType(mapping)


@dataclass
class FieldComparison:
    """Side-by-side view of source headers vs. table columns."""

    matched: list[str] = field(default_factory=list)
    missing_in_source: list[str] = field(default_factory=list)   # table columns with no header
    extra_in_source: list[str] = field(default_factory=list)     # headers with no column
    headers: list[str] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)

    @property
    def importable(self) -> bool:
        return not self.missing_in_source

    def to_dict(self) -> dict:
        return {
            "matched": self.matched,
            "missing_in_source": self.missing_in_source,
            "extra_in_source": self.extra_in_source,
            "headers": self.headers,
            "columns": self.columns,
            "importable": self.importable,
        }


def compare_fields(headers: Sequence[str], columns: Sequence[str]) -> FieldComparison:
    """Compare header names with column names (normalised, order kept)."""
    header_keys = [normalize_name(h) for h in headers]
    column_keys = [normalize_name(c) for c in columns]
    header_set = set(header_keys)
    column_set = set(column_keys)

    result = FieldComparison(headers=list(headers), columns=list(columns))
    for key in header_keys:
        if key in column_set:
            result.matched.append(key)
        else:
            result.extra_in_source.append(key)
    for key in column_keys:
        if key not in header_set:
            result.missing_in_source.append(key)
    return result
