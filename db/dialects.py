"""
db.dialects - Backend-specific SQL behind one seam.

A Dialect owns everything that differs between the MySQL family and
the Oracle family:

  • how to build the connection URL
  • the catalog query that describes a table
  • the insert binder per column (placeholder / date cast / truncation)
  • the bulk insert strategy (multi-row VALUES vs. array binding)

Truncation lengths differ in unit: Oracle DATA_LENGTH counts bytes
(SUBSTRB), MySQL CHARACTER_MAXIMUM_LENGTH counts characters (SUBSTRING).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.engine import URL, Connection

import config
from errors import ConfigError

if TYPE_CHECKING:
    from db.engine import ConnectionParams


DATE_TYPE_MARKERS    = ("DATE", "DATETIME", "TIMESTAMP")
NUMERIC_TYPE_MARKERS = ("NUMBER", "INT", "DECIMAL", "FLOAT", "DOUBLE")
CHAR_TYPE_MARKER     = "CHAR"

# name  or  owner.name
_TABLE_NAME_RE = re.compile(
    r"^[A-Za-z_][A-Za-z0-9_$#]*(\.[A-Za-z_][A-Za-z0-9_$#]*)?$"
)


@dataclass(frozen=True)
class ColumnDescriptor:
    """One target column as reported by the catalog."""

    name: str
    declared_type: str
    max_length: int = 0

    @property
    def is_date(self) -> bool:
        return any(m in self.declared_type.upper() for m in DATE_TYPE_MARKERS)

    @property
    def is_numeric(self) -> bool:
        return any(m in self.declared_type.upper() for m in NUMERIC_TYPE_MARKERS)

    @property
    def is_bounded_char(self) -> bool:
        return CHAR_TYPE_MARKER in self.declared_type.upper() and self.max_length > 0


def split_table_name(table: str) -> tuple[Optional[str], str]:
    """
    Validate a user-supplied table name and split off an owner prefix.
    Raises ConfigError for anything that is not a plain identifier.
    """
    table = (table or "").strip()
    if not table:
        raise ConfigError("Table name must not be empty")
    if not _TABLE_NAME_RE.match(table):
        raise ConfigError(f"Invalid table name: {table!r}")
    if "." in table:
        owner, name = table.split(".", 1)
        return owner, name
    return None, table


class Dialect:
    """Base class; concrete dialects override the hooks below."""

    name = ""
    drivername = ""
    default_port = 0
    ping_sql = "SELECT 1"

    # ── Connection ─────────────────────────────────────────────────────

    def url(self, params: ConnectionParams) -> URL:
        raise NotImplementedError

    def connect_args(self, params: ConnectionParams) -> dict:
        return {}

    def validate(self, params: ConnectionParams) -> None:
        """Backend-specific mandatory fields; raises ConfigError."""

    # ── Catalog ────────────────────────────────────────────────────────

    def describe_table_query(self, table: str) -> tuple[str, dict]:
        raise NotImplementedError

    # ── Insert statements ──────────────────────────────────────────────

    def placeholder(self, col_idx: int, row_idx: Optional[int] = None) -> str:
        raise NotImplementedError

    def date_cast(self, bind: str) -> str:
        return bind

    def truncate_expr(self, bind: str, length: int) -> str:
        raise NotImplementedError

    def build_insert_binder(
        self,
        column: ColumnDescriptor,
        truncate: bool,
        col_idx: int,
        row_idx: Optional[int] = None,
    ) -> str:
        bind = self.placeholder(col_idx, row_idx)
        if column.is_date:
            return self.date_cast(bind)
        if truncate and column.is_bounded_char:
            return self.truncate_expr(bind, column.max_length)
        return bind

    def _values_clause(
        self,
        columns: Sequence[ColumnDescriptor],
        truncate: bool,
        row_idx: Optional[int] = None,
    ) -> str:
        binders = [
            self.build_insert_binder(col, truncate, j, row_idx)
            for j, col in enumerate(columns)
        ]
        return "(" + ", ".join(binders) + ")"

    def build_insert_sql(
        self,
        table: str,
        columns: Sequence[ColumnDescriptor],
        truncate: bool,
    ) -> str:
        """Single-row INSERT template used by row isolation."""
        return f"INSERT INTO {table} VALUES {self._values_clause(columns, truncate)}"

    def insert_bulk(
        self,
        conn: Connection,
        table: str,
        columns: Sequence[ColumnDescriptor],
        rows: Sequence[Sequence],
        truncate: bool,
    ) -> None:
        raise NotImplementedError

    def insert_row(
        self,
        conn: Connection,
        table: str,
        columns: Sequence[ColumnDescriptor],
        row: Sequence,
        truncate: bool,
    ) -> None:
        raise NotImplementedError


class MySQLDialect(Dialect):
    """MySQL / MariaDB through PyMySQL."""

    name = "mysql"
    drivername = "mysql+pymysql"
    default_port = config.MYSQL_DEFAULT_PORT
    ping_sql = "SELECT 1"

    def url(self, params: ConnectionParams) -> URL:
        return URL.create(
            self.drivername,
            username=params.username or None,
            password=params.password or None,
            host=params.host,
            port=params.port_number(self.default_port),
            database=params.database.strip(),
            query={"charset": config.MYSQL_CHARSET},
        )

    def validate(self, params: ConnectionParams) -> None:
        if not params.database.strip():
            raise ConfigError("MySQL requires a database name")
        if not params.host.strip():
            raise ConfigError("Host must not be empty")

    def describe_table_query(self, table: str) -> tuple[str, dict]:
        owner, name = split_table_name(table)
        sql = """
SELECT COLUMN_NAME,
       UPPER(DATA_TYPE),
       COALESCE(CHARACTER_MAXIMUM_LENGTH, 0)
FROM INFORMATION_SCHEMA.COLUMNS
WHERE TABLE_SCHEMA = COALESCE(:owner, DATABASE())
  AND TABLE_NAME = :table_name
ORDER BY ORDINAL_POSITION"""
        return sql, {"owner": owner, "table_name": name}

    def placeholder(self, col_idx: int, row_idx: Optional[int] = None) -> str:
        if row_idx is None:
            return f":c{col_idx}"
        return f":c{col_idx}_{row_idx}"

    def date_cast(self, bind: str) -> str:
        return f"STR_TO_DATE({bind}, '%Y-%m-%d %H:%i:%s')"

    def truncate_expr(self, bind: str, length: int) -> str:
        # character based
        return f"SUBSTRING({bind}, 1, {length})"

    def insert_bulk(self, conn, table, columns, rows, truncate) -> None:
        if len(rows) == 1:
            self.insert_row(conn, table, columns, rows[0], truncate)
            return

        groups = []
        params = {}
        for i, row in enumerate(rows):
            groups.append(self._values_clause(columns, truncate, row_idx=i))
            for j, value in enumerate(row):
                params[f"c{j}_{i}"] = value
        sql = f"INSERT INTO {table} VALUES " + ", ".join(groups)
        conn.execute(text(sql), params)

    def insert_row(self, conn, table, columns, row, truncate) -> None:
        sql = self.build_insert_sql(table, columns, truncate)
        conn.execute(text(sql), {f"c{j}": value for j, value in enumerate(row)})


class OracleDialect(Dialect):
    """Oracle through python-oracledb (thin mode)."""

    name = "oracle"
    drivername = "oracle+oracledb"
    default_port = config.ORACLE_DEFAULT_PORT
    ping_sql = "SELECT 1 FROM DUAL"

    MODES = ("service", "sid", "tns")

    def url(self, params: ConnectionParams) -> URL:
        user = params.username or None
        password = params.password or None
        if params.oracle_mode == "tns":
            # descriptor travels in connect_args
            return URL.create(self.drivername, username=user, password=password)

        port = params.port_number(self.default_port)
        if params.oracle_mode == "service":
            return URL.create(
                self.drivername, username=user, password=password,
                host=params.host, port=port,
                query={"service_name": params.database.strip()},
            )
        return URL.create(
            self.drivername, username=user, password=password,
            host=params.host, port=port, database=params.database.strip(),
        )

    def connect_args(self, params: ConnectionParams) -> dict:
        if params.oracle_mode == "tns":
            return {"dsn": params.tns.strip()}
        return {}

    def validate(self, params: ConnectionParams) -> None:
        if params.oracle_mode not in self.MODES:
            raise ConfigError(f"Unsupported Oracle connection type: {params.oracle_mode}")
        if params.oracle_mode == "tns":
            if not params.tns.strip():
                raise ConfigError("TNS connection requires a connect descriptor")
            return
        if not params.host.strip():
            raise ConfigError("Host must not be empty")
        if not params.database.strip():
            label = "service name" if params.oracle_mode == "service" else "SID"
            raise ConfigError(f"Oracle {label} must not be empty")

    def describe_table_query(self, table: str) -> tuple[str, dict]:
        owner, name = split_table_name(table)
        sql = """
SELECT COLUMN_NAME, DATA_TYPE, DATA_LENGTH
FROM ALL_TAB_COLUMNS
WHERE TABLE_NAME = UPPER(:table_name)
  AND OWNER = COALESCE(UPPER(:owner), SYS_CONTEXT('USERENV', 'CURRENT_SCHEMA'))
ORDER BY COLUMN_ID"""
        return sql, {"owner": owner, "table_name": name}

    def placeholder(self, col_idx: int, row_idx: Optional[int] = None) -> str:
        return f":{col_idx + 1}"

    def date_cast(self, bind: str) -> str:
        return f"TO_DATE({bind}, 'YYYY-MM-DD HH24:MI:SS')"

    def truncate_expr(self, bind: str, length: int) -> str:
        # byte based
        return f"SUBSTRB({bind}, 1, {length})"

    # Statements go to the driver untouched (exec_driver_sql): the
    # TO_DATE mask contains ':MI' which text() would take for a bind.

    def insert_bulk(self, conn, table, columns, rows, truncate) -> None:
        """One executemany call: every bind is an array over the batch."""
        sql = self.build_insert_sql(table, columns, truncate)
        conn.exec_driver_sql(sql, [tuple(r) for r in rows])

    def insert_row(self, conn, table, columns, row, truncate) -> None:
        sql = self.build_insert_sql(table, columns, truncate)
        conn.exec_driver_sql(sql, tuple(row))


DIALECTS: dict[str, Dialect] = {
    MySQLDialect.name: MySQLDialect(),
    OracleDialect.name: OracleDialect(),
}


def get_dialect(backend: str) -> Dialect:
    """Look up a dialect by backend kind (case-insensitive)."""
    key = (backend or "").strip().lower()
    try:
        return DIALECTS[key]
    except KeyError:
        raise ConfigError(f"Unsupported database type: {backend}") from None
