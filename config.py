"""
sheet2db - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
import tempfile
from pathlib import Path


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR               = Path(__file__).resolve().parent
CONNECTION_CONFIG_PATH = Path(os.environ.get(
    "SHEET2DB_CONFIG",
    Path.home() / ".config" / "sheet2db" / "dbconfig.json",
))
UPLOAD_DIR = Path(os.environ.get(
    "SHEET2DB_UPLOAD_DIR",
    Path(tempfile.gettempdir()) / "sheet2db_uploads",
))

# ── Import engine ──────────────────────────────────────────────────────
BATCH_SIZE         = int(os.environ.get("SHEET2DB_BATCH_SIZE", "1000"))
ALLOWED_EXTENSIONS = frozenset({".xlsx", ".xlsm", ".csv"})

# ── Database ───────────────────────────────────────────────────────────
MYSQL_DEFAULT_PORT  = 3306
ORACLE_DEFAULT_PORT = 1521
MYSQL_CHARSET       = "utf8mb4"

# ── Server ─────────────────────────────────────────────────────────────
HOST          = os.environ.get("SHEET2DB_HOST", "127.0.0.1")
PORT          = int(os.environ.get("SHEET2DB_PORT", "5000"))
DEBUG         = os.environ.get("SHEET2DB_DEBUG", "0") == "1"
SECRET        = os.environ.get("SHEET2DB_SECRET", "sheet2db-dev-key-change-in-prod")
MAX_UPLOAD_MB = int(os.environ.get("SHEET2DB_MAX_UPLOAD_MB", "64"))

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL  = os.environ.get("SHEET2DB_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
