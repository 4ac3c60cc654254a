"""
services.config_store - Persist the last-used connection form.

Stored as JSON at config.CONNECTION_CONFIG_PATH, readable by the owner
only.  A missing or broken file simply yields an empty form.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

import config

logger = logging.getLogger(__name__)

SAVED_KEYS = (
    "backend", "host", "port", "username", "password", "database",
    "oracle_mode", "tns", "table", "truncate",
)


def load_saved_config(path: Optional[Path] = None) -> dict:
    path = Path(path or config.CONNECTION_CONFIG_PATH)
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Cannot read saved config {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring saved config {path}: not an object")
        return {}
    return {k: data[k] for k in SAVED_KEYS if k in data}


def save_config(data: dict, path: Optional[Path] = None) -> Path:
    """Write the known keys of ``data``; returns the file path."""
    path = Path(path or config.CONNECTION_CONFIG_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {k: data[k] for k in SAVED_KEYS if k in data}

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False)
    os.chmod(path, 0o600)

    logger.info(f"Connection config saved to {path}")
    return path
