"""
import_engine.batch_writer - Chunked, transactional write-back.

Rows are buffered column by column.  A flush sends the whole buffer as
one bulk statement inside one transaction:

    IDLE → BUFFERING → FLUSHING ─┬─ ok ──────→ BUFFERING
                                 └─ failure ─→ ISOLATING → TERMINATED

On bulk failure the transaction is rolled back and every buffered row
is retried alone, each in its own transaction, in source order.  The
first row that still fails ends the import.  If none fails the batch is
still refused: a bulk/row discrepancy is reported, not accepted.

Committed batches stay committed; the import is chunk-atomic.
"""

from __future__ import annotations

import enum
import logging
from typing import Sequence

from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError

import config
from db.dialects import ColumnDescriptor, Dialect
from errors import BulkAnomalyError, RowInsertError

logger = logging.getLogger(__name__)

# header row + 1-based numbering
ROW_NUMBER_OFFSET = 2


class WriterState(enum.Enum):
    IDLE = "idle"
    BUFFERING = "buffering"
    FLUSHING = "flushing"
    ISOLATING = "isolating"
    TERMINATED = "terminated"


def _db_message(exc: Exception) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


class RowBuffer:
    """One value list per column; all lists share the same length."""

    def __init__(self, width: int):
        self.columns: list[list] = [[] for _ in range(width)]

    def __len__(self) -> int:
        return len(self.columns[0]) if self.columns else 0

    def append(self, values: Sequence) -> None:
        if len(values) != len(self.columns):
            raise ValueError(f"expected {len(self.columns)} values, got {len(values)}")
        for col, value in zip(self.columns, values):
            col.append(value)

    def row(self, k: int) -> tuple:
        return tuple(col[k] for col in self.columns)

    def rows(self) -> list[tuple]:
        return [tuple(r) for r in zip(*self.columns)]

    def clear(self) -> None:
        for col in self.columns:
            col.clear()


class BatchWriter:
    """
    Buffers coerced rows for one table and flushes them in bulk.

    ``flush()`` returns how many rows it committed; the caller keeps
    the running total.
    """

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect,
        table: str,
        columns: Sequence[ColumnDescriptor],
        *,
        truncate: bool = False,
        batch_size: int = config.BATCH_SIZE,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.conn = conn
        self.dialect = dialect
        self.table = table
        self.columns = list(columns)
        self.truncate = truncate
        self.batch_size = batch_size
        self.buffer = RowBuffer(len(self.columns))
        self.state = WriterState.IDLE

    @property
    def pending(self) -> int:
        return len(self.buffer)

    @property
    def is_full(self) -> bool:
        return len(self.buffer) >= self.batch_size

    def append(self, values: Sequence) -> None:
        if self.state is WriterState.TERMINATED:
            raise RuntimeError("writer is terminated")
        self.buffer.append(values)
        self.state = WriterState.BUFFERING

    def flush(self, batch_start: int) -> int:
        """
        Write the buffer.  ``batch_start`` is the zero-based data-row
        index of the first buffered row, used for error row numbers.

        Returns the number of rows committed.  Raises RowInsertError or
        BulkAnomalyError; the writer is then terminated.
        """
        count = len(self.buffer)
        if count == 0:
            return 0

        self.state = WriterState.FLUSHING
        rows = self.buffer.rows()
        try:
            with self.conn.begin():
                self.dialect.insert_bulk(
                    self.conn, self.table, self.columns, rows, self.truncate,
                )
        except DBAPIError as exc:
            bulk_message = _db_message(exc)
            logger.warning(
                f"Bulk insert of rows {batch_start + ROW_NUMBER_OFFSET}-"
                f"{batch_start + count + 1} failed, isolating: {bulk_message}"
            )
            self._isolate(rows, batch_start, bulk_message)

        logger.info(
            f"Committed rows {batch_start + ROW_NUMBER_OFFSET}-"
            f"{batch_start + count + 1} ({count})"
        )
        self.buffer.clear()
        self.state = WriterState.BUFFERING
        return count

    def _isolate(self, rows: list[tuple], batch_start: int, bulk_message: str) -> None:
        """Retry row by row; always raises."""
        self.state = WriterState.ISOLATING
        for k, row in enumerate(rows):
            try:
                with self.conn.begin():
                    self.dialect.insert_row(
                        self.conn, self.table, self.columns, row, self.truncate,
                    )
            except DBAPIError as exc:
                line = batch_start + k + ROW_NUMBER_OFFSET
                message = _db_message(exc)
                logger.error(f"Row {line} rejected: {message}")
                self.state = WriterState.TERMINATED
                raise RowInsertError(line, message, committed_rows=k) from exc

        logger.error(
            f"Every row of the failed batch at {batch_start + ROW_NUMBER_OFFSET} "
            f"succeeded alone; refusing batch"
        )
        self.state = WriterState.TERMINATED
        raise BulkAnomalyError(bulk_message, committed_rows=len(rows))

    def close(self) -> None:
        self.buffer.clear()
        self.state = WriterState.TERMINATED
