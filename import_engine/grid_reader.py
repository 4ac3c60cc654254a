"""
import_engine.grid_reader - Decode a source file into a grid of strings.

Responsibilities:
  • .xlsx / .xlsm → first worksheet via openpyxl (cached values only)
  • .csv          → csv.reader, strict UTF-8 with BOM removal
  • every cell becomes a str ('' for empty cells)
  • trailing blank rows are dropped

Row 0 of the grid is the header row.
"""

from __future__ import annotations

import csv
import io
import zipfile
from datetime import date, datetime, time
from pathlib import Path
from typing import Iterable, Iterator

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

import config
from errors import SourceReadError

Grid = list[list[str]]


def read_grid(path: str | Path) -> Grid:
    """Read the whole file.  Raises SourceReadError."""
    rows = _trim_trailing_blank(list(_iter_rows(Path(path))))
    if not rows:
        raise SourceReadError(f"File is empty: {Path(path).name}")
    return rows


def read_headers(path: str | Path) -> list[str]:
    """Read only the header row.  Raises SourceReadError."""
    rows = _iter_rows(Path(path))
    try:
        return next(rows)
    except StopIteration:
        raise SourceReadError(f"File is empty: {Path(path).name}") from None
    finally:
        rows.close()


def cell_text(value) -> str:
    """Render one spreadsheet cell the way it reads in the sheet."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ── Private helpers ────────────────────────────────────────────────────

def _iter_rows(path: Path) -> Iterator[list[str]]:
    suffix = path.suffix.lower()
    if suffix not in config.ALLOWED_EXTENSIONS:
        raise SourceReadError(
            f"Unsupported file type '{suffix or path.name}' "
            f"(expected {', '.join(sorted(config.ALLOWED_EXTENSIONS))})"
        )
    if not path.is_file():
        raise SourceReadError(f"File not found: {path}")

    if suffix == ".csv":
        yield from _iter_csv(path)
    else:
        yield from _iter_workbook(path)


def _iter_csv(path: Path) -> Iterator[list[str]]:
    raw = path.read_bytes()
    if raw.startswith(b"\xef\xbb\xbf"):
        raw = raw[3:]
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SourceReadError(
            f"{path.name} is not valid UTF-8 (byte {exc.start}); "
            f"save it as UTF-8 CSV and retry"
        ) from exc
    try:
        for row in csv.reader(io.StringIO(text)):
            yield row
    except csv.Error as exc:
        raise SourceReadError(f"Cannot parse CSV {path.name}: {exc}") from exc


def _iter_workbook(path: Path) -> Iterator[list[str]]:
    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile,
            OSError, KeyError, ValueError) as exc:
        raise SourceReadError(f"Cannot open workbook {path.name}: {exc}") from exc

    try:
        if not wb.worksheets:
            raise SourceReadError(f"Workbook {path.name} has no worksheets")
        sheet = wb.worksheets[0]
        for values in sheet.iter_rows(values_only=True):
            yield [cell_text(v) for v in values]
    finally:
        wb.close()


def _trim_trailing_blank(rows: Iterable[list[str]]) -> Grid:
    rows = list(rows)
    while rows and not any(cell.strip() for cell in rows[-1]):
        rows.pop()
    return rows
