from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

import db.engine
from db.dialects import MySQLDialect, OracleDialect
from db.engine import ConnectionParams, open_connection
from errors import ConfigError, DBConnectionError


@pytest.fixture
def fake_create_engine(monkeypatch):
    """Replace create_engine; the returned mock engine is configurable."""
    engine = MagicMock(name="engine")
    factory = MagicMock(return_value=engine)
    monkeypatch.setattr(db.engine, "create_engine", factory)
    return factory


def _driver_error(message):
    return OperationalError("SELECT 1", {}, Exception(message))


# ── ConnectionParams ───────────────────────────────────────────────────

def test_params_from_dict_trims_and_ignores_unknown_keys():
    params = ConnectionParams.from_dict({
        "backend": " MySQL ", "host": " db ", "port": 3307, "username": "root",
        "password": " secret ", "database": "shop", "table": "people", "extra": 1,
    })
    assert params.backend == "mysql"
    assert params.host == "db"
    assert params.port == "3307"
    assert params.password == " secret "
    assert params.oracle_mode == "service"


def test_params_need_a_backend():
    with pytest.raises(ConfigError):
        ConnectionParams.from_dict({"host": "db"})


@pytest.mark.parametrize("port", ["abc", "0", "70000", "-1"])
def test_bad_port_is_a_config_error(port):
    with pytest.raises(ConfigError):
        ConnectionParams("mysql", port=port).port_number(3306)


def test_describe_never_shows_password():
    params = ConnectionParams("oracle", "db", "1521", "scott", "tiger", "ORCL", "sid")
    assert params.describe() == "Oracle SID: db:1521/ORCL"
    assert "tiger" not in params.describe()


# ── open_connection ────────────────────────────────────────────────────

def test_invalid_params_fail_before_any_connection(fake_create_engine):
    """Test that local validation errors never reach the network."""
    with pytest.raises(ConfigError):
        open_connection(ConnectionParams("mysql", "db", "3306", "root", "pw", ""))
    with pytest.raises(ConfigError):
        open_connection(ConnectionParams("oracle", "db", "1521", database="X", oracle_mode="x"))
    with pytest.raises(ConfigError):
        open_connection(ConnectionParams("sqlserver", "db"))
    fake_create_engine.assert_not_called()


def test_connect_failure_carries_driver_message(fake_create_engine):
    engine = fake_create_engine.return_value
    engine.connect.side_effect = _driver_error("Can't connect to MySQL server on 'db'")

    with pytest.raises(DBConnectionError) as exc_info:
        open_connection(ConnectionParams("mysql", "db", "3306", "root", "pw", "shop"))

    assert "Can't connect to MySQL server" in str(exc_info.value)
    assert exc_info.value.kind == "connection"
    engine.dispose.assert_called_once()


def test_ping_failure_closes_the_connection(fake_create_engine):
    """Test that a failed liveness check closes what was opened."""
    engine = fake_create_engine.return_value
    conn = engine.connect.return_value
    conn.execute.side_effect = _driver_error("ORA-12514: listener does not know of service")

    with pytest.raises(DBConnectionError, match="ORA-12514"):
        open_connection(ConnectionParams("oracle", "db", "1521", "scott", "tiger", "ORCL"))

    conn.close.assert_called_once()
    engine.dispose.assert_called_once()


def test_successful_open_returns_pinged_handle(fake_create_engine):
    engine = fake_create_engine.return_value
    conn = engine.connect.return_value

    handle = open_connection(ConnectionParams("oracle", "db", "", "scott", "tiger", "ORCL"))

    assert handle.conn is conn
    assert isinstance(handle.dialect, OracleDialect)
    ping = conn.execute.call_args.args[0]
    assert str(ping) == "SELECT 1 FROM DUAL"
    assert fake_create_engine.call_args.kwargs["connect_args"] == {}

    handle.close()
    conn.close.assert_called_once()
    engine.dispose.assert_called_once()


def test_handle_is_a_context_manager(fake_create_engine):
    engine = fake_create_engine.return_value
    with open_connection(ConnectionParams("mysql", "db", "", "root", "", "shop")) as handle:
        assert isinstance(handle.dialect, MySQLDialect)
    engine.dispose.assert_called_once()
