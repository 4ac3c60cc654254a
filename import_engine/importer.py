"""
import_engine.importer - Top-level orchestrator.

Coordinates grid_reader → reconciler → coercer → batch_writer and
produces a structured ImportOutcome.  The first unrecoverable failure
ends the run; batches committed before it stay committed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

import config
from db.dialects import split_table_name
from db.engine import ConnectionParams, DatabaseHandle, open_connection, validate_params
from errors import ImportEngineError, SourceReadError
from import_engine.batch_writer import ROW_NUMBER_OFFSET, BatchWriter
from import_engine.coercer import RowCoercer
from import_engine.grid_reader import read_grid
from import_engine.progress import ProgressReporter, ProgressSink
from import_engine.reconciler import describe_table, match_headers
from import_engine.report import ImportOutcome

logger = logging.getLogger(__name__)


def import_grid(
    handle: DatabaseHandle,
    grid: Sequence[Sequence[str]],
    table: str,
    *,
    truncate: bool = False,
    progress: Optional[ProgressSink] = None,
    batch_size: int = config.BATCH_SIZE,
) -> ImportOutcome:
    """
    Import an already-decoded grid (row 0 = headers) through an open handle.

    Parameters
    ----------
    handle     : open connection, owned by this call for its duration
    grid       : header row followed by data rows, all cells str
    table      : target table, ``name`` or ``owner.name``
    truncate   : let the database cut bounded character values to size
    progress   : optional ``(percent, message)`` callback, once per batch
    batch_size : rows per bulk statement

    Returns
    -------
    ImportOutcome; ``outcome.failure`` is set when the run stopped early
    """
    outcome = ImportOutcome()
    if not grid:
        return outcome.fail(SourceReadError("Source has no header row"))

    headers, data_rows = list(grid[0]), grid[1:]
    outcome.total_rows = len(data_rows)

    def _record(percent: int, message: str) -> None:
        outcome.progress.append({"percent": percent, "message": message})
        if progress is not None:
            progress(percent, message)

    reporter = ProgressReporter(_record)

    try:
        columns = describe_table(handle, table)
        coercer = RowCoercer(columns, match_headers(columns, headers))
        writer = BatchWriter(
            handle.conn, handle.dialect, table, columns,
            truncate=truncate, batch_size=batch_size,
        )

        last = len(data_rows) - 1
        batch_start = 0
        for i, row in enumerate(data_rows):
            writer.append(coercer.process(row, i + ROW_NUMBER_OFFSET))
            if writer.is_full or i == last:
                outcome.success_count += writer.flush(batch_start)
                batch_start = i + 1
                reporter.report(outcome.success_count, outcome.total_rows)

        if not data_rows:
            reporter.report(0, 0)

    except ImportEngineError as exc:
        logger.error(f"Import into {table} stopped: {exc}")
        return outcome.fail(exc)

    logger.info(f"Import into {table} finished: {outcome.summary()}")
    return outcome


def run_import(
    params: ConnectionParams,
    file_path: str | Path,
    table: str,
    *,
    truncate: bool = False,
    progress: Optional[ProgressSink] = None,
) -> ImportOutcome:
    """
    Import a spreadsheet or CSV file into ``table``.

    Parameters and the table name are checked and the file decoded
    before any connection is opened.  The connection is always closed.
    """
    try:
        split_table_name(table)
        validate_params(params)
        grid = read_grid(file_path)
        handle = open_connection(params)
    except ImportEngineError as exc:
        logger.error(f"Import into {table} not started: {exc}")
        return ImportOutcome().fail(exc)

    with handle:
        return import_grid(
            handle, grid, table.strip(),
            truncate=truncate, progress=progress,
        )
