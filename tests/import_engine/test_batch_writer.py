import pytest
from sqlalchemy.exc import OperationalError

from errors import BulkAnomalyError, RowInsertError
from import_engine.batch_writer import BatchWriter, RowBuffer, WriterState
from import_engine.reconciler import describe_table


@pytest.fixture
def writer(people_handle):
    columns = describe_table(people_handle, "people")
    return BatchWriter(
        people_handle.conn, people_handle.dialect, "people", columns, batch_size=5,
    )


def _fill(writer, ids):
    for i in ids:
        writer.append((str(i), f"name{i}", f"n{i}@example.com"))


def test_row_buffer_is_columnar():
    buf = RowBuffer(2)
    buf.append(("a", 1))
    buf.append(("b", 2))
    assert buf.columns == [["a", "b"], [1, 2]]
    assert buf.rows() == [("a", 1), ("b", 2)]
    assert buf.row(1) == ("b", 2)
    with pytest.raises(ValueError):
        buf.append(("too", "many", "values"))
    buf.clear()
    assert len(buf) == 0


def test_flush_commits_whole_buffer_and_clears_it(writer, people_handle, count_rows):
    """Test that a successful flush reports exactly B rows and empties the buffer."""
    _fill(writer, range(1, 4))
    assert writer.state is WriterState.BUFFERING
    assert writer.pending == 3

    committed = writer.flush(batch_start=0)

    assert committed == 3
    assert writer.pending == 0
    assert count_rows(people_handle, "people") == 3
    assert len(people_handle.dialect.bulk_calls) == 1
    assert people_handle.dialect.row_calls == []


def test_is_full_at_batch_size(writer):
    _fill(writer, range(1, 5))
    assert not writer.is_full
    _fill(writer, [5])
    assert writer.is_full


def test_empty_flush_is_a_no_op(writer, people_handle):
    assert writer.flush(0) == 0
    assert people_handle.dialect.bulk_calls == []


def test_failing_row_is_pinpointed(writer, people_handle, count_rows):
    """
    Test that row isolation reports batch_start + k + 2 and stops at row k.
    Row k=2 repeats id 1 (UNIQUE) so the bulk insert fails.
    """
    writer.append(("1", "a", None))
    writer.append(("2", "b", None))
    writer.append(("1", "dup", None))
    writer.append(("4", "d", None))
    writer.append(("5", "e", None))

    with pytest.raises(RowInsertError) as exc_info:
        writer.flush(batch_start=1000)

    err = exc_info.value
    assert err.row == 1000 + 2 + 2
    assert "UNIQUE" in err.db_message
    assert err.committed_rows == 2
    # rows after the failing one are never attempted
    assert people_handle.dialect.row_calls == [("1", "a", None), ("2", "b", None), ("1", "dup", None)]
    assert count_rows(people_handle, "people") == 2
    assert writer.state is WriterState.TERMINATED


def test_committed_batches_survive_a_later_failure(writer, people_handle, count_rows):
    _fill(writer, range(1, 6))
    assert writer.flush(0) == 5

    writer.append(("6", None, None))     # NOT NULL violation
    with pytest.raises(RowInsertError) as exc_info:
        writer.flush(5)

    assert exc_info.value.row == 7
    assert count_rows(people_handle, "people") == 5


def test_bulk_failure_without_row_failure_is_an_anomaly(writer, people_handle, monkeypatch, count_rows):
    """Test that a bulk/row discrepancy terminates with the bulk error."""
    def broken_bulk(conn, table, columns, rows, truncate):
        raise OperationalError("INSERT", {}, Exception("packet too large"))

    monkeypatch.setattr(people_handle.dialect, "insert_bulk", broken_bulk)
    _fill(writer, range(1, 4))

    with pytest.raises(BulkAnomalyError) as exc_info:
        writer.flush(0)

    err = exc_info.value
    assert err.db_message == "packet too large"
    assert err.committed_rows == 3
    assert err.kind == "bulk_anomaly"
    assert count_rows(people_handle, "people") == 3
    assert writer.state is WriterState.TERMINATED


def test_terminated_writer_refuses_rows(writer):
    writer.close()
    with pytest.raises(RuntimeError):
        writer.append(("1", "a", None))


def test_batch_size_must_be_positive(people_handle):
    with pytest.raises(ValueError):
        BatchWriter(people_handle.conn, people_handle.dialect, "people", [], batch_size=0)
