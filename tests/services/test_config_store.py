import json
import stat

import config
from services.config_store import load_saved_config, save_config


def test_missing_file_gives_empty_form():
    assert load_saved_config() == {}


def test_save_then_load_keeps_known_keys_only():
    """Test that unknown keys are dropped and the file is owner-only."""
    path = save_config({
        "backend": "oracle", "host": "db", "password": "tiger",
        "oracle_mode": "tns", "truncate": True, "session": "xyz",
    })

    assert path == config.CONNECTION_CONFIG_PATH
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert load_saved_config() == {
        "backend": "oracle", "host": "db", "password": "tiger",
        "oracle_mode": "tns", "truncate": True,
    }


def test_broken_file_gives_empty_form(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    assert load_saved_config(path) == {}

    path.write_text(json.dumps(["a", "list"]))
    assert load_saved_config(path) == {}
