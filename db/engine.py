"""
db.engine - Connection provider.

Builds a live, single-connection handle for one import from a set of
connection parameters.  Parameters are validated locally first; the
network is touched only once they pass.  No retries: a failed open or
ping is reported straight back to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.pool import NullPool

from db.dialects import Dialect, get_dialect
from errors import ConfigError, DBConnectionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionParams:
    """
    Everything needed to reach the target database.

    ``database`` is the MySQL database name, or the Oracle service name
    or SID depending on ``oracle_mode``.  ``tns`` holds a raw connect
    descriptor (or alias) and is used only when ``oracle_mode == "tns"``.
    """

    backend: str
    host: str = ""
    port: str = ""
    username: str = ""
    password: str = ""
    database: str = ""
    oracle_mode: str = "service"
    tns: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "ConnectionParams":
        """Build from a request or saved-config payload; unknown keys are ignored."""
        kwargs = {}
        for f in fields(cls):
            if data.get(f.name) is None:
                continue
            value = str(data[f.name])
            # passwords may legitimately carry whitespace
            kwargs[f.name] = value if f.name == "password" else value.strip()

        if not kwargs.get("backend"):
            raise ConfigError("Database type must not be empty")
        kwargs["backend"] = kwargs["backend"].lower()
        if "oracle_mode" in kwargs:
            kwargs["oracle_mode"] = kwargs["oracle_mode"].lower() or "service"
        return cls(**kwargs)

    def port_number(self, default: int) -> int:
        port = str(self.port).strip()
        if not port:
            return default
        if not port.isdigit() or not 0 < int(port) < 65536:
            raise ConfigError(f"Invalid port: {self.port!r}")
        return int(port)

    def describe(self) -> str:
        """Human-readable target, without credentials."""
        if self.backend == "mysql":
            return f"MySQL: {self.host}:{self.port}/{self.database}"
        if self.oracle_mode == "service":
            return f"Oracle service name: {self.host}:{self.port}/{self.database}"
        if self.oracle_mode == "sid":
            return f"Oracle SID: {self.host}:{self.port}/{self.database}"
        return f"Oracle TNS: {self.tns}"


class DatabaseHandle:
    """
    One open connection plus the dialect that speaks to it.

    Owned by exactly one import; close it (or use it as a context
    manager) when done.
    """

    def __init__(self, engine: Engine, conn: Connection, dialect: Dialect):
        self.engine = engine
        self.conn = conn
        self.dialect = dialect

    def close(self) -> None:
        try:
            self.conn.close()
        finally:
            self.engine.dispose()

    def __enter__(self) -> "DatabaseHandle":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def validate_params(params: ConnectionParams) -> Dialect:
    """Local checks only; returns the dialect for the backend."""
    dialect = get_dialect(params.backend)
    dialect.validate(params)
    params.port_number(dialect.default_port)
    return dialect


def open_connection(params: ConnectionParams) -> DatabaseHandle:
    """
    Open and ping a connection.

    Raises ConfigError (nothing attempted) or DBConnectionError
    (carrying the driver's message).
    """
    dialect = validate_params(params)

    engine = create_engine(
        dialect.url(params),
        connect_args=dialect.connect_args(params),
        poolclass=NullPool,
        future=True,
    )
    conn = None
    try:
        conn = engine.connect()
        with conn.begin():
            conn.execute(text(dialect.ping_sql))
    except DBAPIError as exc:
        if conn is not None:
            conn.close()
        engine.dispose()
        message = str(exc.orig) if exc.orig is not None else str(exc)
        logger.error(f"Connection to {params.describe()} failed: {message}")
        raise DBConnectionError(f"Database connection failed: {message}") from exc

    logger.info(f"Connected to {params.describe()}")
    return DatabaseHandle(engine, conn, dialect)
