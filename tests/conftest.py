import pytest
from sqlalchemy import create_engine, text

import config
from db.dialects import MySQLDialect, split_table_name
from db.engine import DatabaseHandle


class SQLiteTestDialect(MySQLDialect):
    """MySQL statement shapes (multi-row VALUES) run against SQLite."""

    name = "sqlite"

    def describe_table_query(self, table):
        _owner, name = split_table_name(table)
        # VARCHAR(40) -> 40, anything without a length -> 0
        sql = (
            "SELECT name, type, "
            "CASE WHEN instr(type, '(') > 0 "
            "THEN CAST(substr(type, instr(type, '(') + 1) AS INTEGER) ELSE 0 END "
            "FROM pragma_table_info(:table_name) ORDER BY cid"
        )
        return sql, {"table_name": name}

    def date_cast(self, bind):
        return bind

    def truncate_expr(self, bind, length):
        return f"substr({bind}, 1, {length})"


class RecordingDialect(SQLiteTestDialect):
    """Keeps every bulk and single-row attempt for later inspection."""

    def __init__(self):
        self.bulk_calls = []
        self.row_calls = []

    def insert_bulk(self, conn, table, columns, rows, truncate):
        self.bulk_calls.append(list(rows))
        super().insert_bulk(conn, table, columns, rows, truncate)

    def insert_row(self, conn, table, columns, row, truncate):
        self.row_calls.append(tuple(row))
        super().insert_row(conn, table, columns, row, truncate)


PEOPLE_DDL = """
CREATE TABLE people (
    id      INTEGER NOT NULL UNIQUE,
    name    VARCHAR(40) NOT NULL,
    email   VARCHAR(80)
)
"""


def _make_handle(dialect, *ddl):
    engine = create_engine("sqlite://", future=True)
    conn = engine.connect()
    with conn.begin():
        for stmt in ddl:
            conn.execute(text(stmt))
    return DatabaseHandle(engine, conn, dialect)


@pytest.fixture
def dialect():
    return RecordingDialect()


@pytest.fixture
def make_handle(dialect):
    """Build an in-memory SQLite handle with the given DDL statements."""
    handles = []

    def _factory(*ddl):
        handle = _make_handle(dialect, *ddl)
        handles.append(handle)
        return handle

    yield _factory
    for handle in handles:
        handle.close()


@pytest.fixture
def people_handle(make_handle):
    return make_handle(PEOPLE_DDL)


def _count_rows(handle, table):
    value = handle.conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()
    handle.conn.rollback()
    return value


def _fetch_all(handle, sql):
    rows = handle.conn.execute(text(sql)).all()
    handle.conn.rollback()
    return rows


@pytest.fixture
def count_rows():
    """Row count without leaving a transaction open."""
    return _count_rows


@pytest.fixture
def fetch_all():
    return _fetch_all


@pytest.fixture(autouse=True)
def _isolated_paths(tmp_path, monkeypatch):
    """Keep uploads and saved configs inside the test's temp dir."""
    monkeypatch.setattr(config, "UPLOAD_DIR", tmp_path / "uploads")
    monkeypatch.setattr(config, "CONNECTION_CONFIG_PATH", tmp_path / "cfg" / "dbconfig.json")
