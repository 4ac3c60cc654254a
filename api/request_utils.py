"""
api.request_utils - Pull connection settings and uploads out of a request.

Settings come from a JSON body or, for multipart uploads, from the
form fields next to the file.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from flask import request
from werkzeug.utils import secure_filename

import config
from db.engine import ConnectionParams
from errors import ConfigError, SourceReadError

TRUE_VALUES = {"1", "true", "on", "yes"}


def request_data() -> dict:
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def connection_params(data: dict) -> ConnectionParams:
    return ConnectionParams.from_dict(data)


def table_name(data: dict) -> str:
    table = str(data.get("table") or "").strip()
    if not table:
        raise ConfigError("Table name must not be empty")
    return table


def flag(data: dict, key: str) -> bool:
    value = data.get(key)
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in TRUE_VALUES


@contextmanager
def saved_upload(field: str = "file") -> Iterator[Path]:
    """Store the uploaded file under UPLOAD_DIR for the duration of the block."""
    f = request.files.get(field)
    if f is None or not f.filename:
        raise SourceReadError(f"No file uploaded in field '{field}'")

    name = secure_filename(f.filename) or "upload"
    if Path(name).suffix.lower() not in config.ALLOWED_EXTENSIONS:
        raise SourceReadError(f"Unsupported file type: {f.filename}")

    config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    path = config.UPLOAD_DIR / f"{uuid.uuid4().hex}_{name}"
    f.save(path)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
