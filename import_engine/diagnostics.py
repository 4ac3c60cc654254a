"""
import_engine.diagnostics - Pre-flight checks offered before an import.

Each helper opens its own short-lived connection and closes it again.
"""

from __future__ import annotations

from pathlib import Path

from db.dialects import split_table_name
from db.engine import ConnectionParams, open_connection, validate_params
from import_engine.grid_reader import read_headers
from import_engine.reconciler import FieldComparison, compare_fields, describe_table


def check_connection(params: ConnectionParams) -> str:
    """Open, ping and close.  Raises ConfigError / DBConnectionError."""
    with open_connection(params):
        pass
    return f"Connection OK\n{params.describe()}\nUser: {params.username}"


def table_columns(params: ConnectionParams, table: str) -> list[str]:
    """Upper-cased column names of ``table`` in physical order."""
    split_table_name(table)
    with open_connection(params) as handle:
        return [col.name.upper() for col in describe_table(handle, table.strip())]


def compare_file_with_table(
    params: ConnectionParams,
    file_path: str | Path,
    table: str,
) -> FieldComparison:
    split_table_name(table)
    validate_params(params)
    headers = read_headers(file_path)
    return compare_fields(headers, table_columns(params, table))
