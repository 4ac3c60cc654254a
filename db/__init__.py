"""
db - Database layer.

Public API:
    ConnectionParams   → connection settings for one target
    open_connection()  → validated, pinged DatabaseHandle
    get_dialect()      → backend-specific SQL (MySQL / Oracle)
    ColumnDescriptor   → one catalog column
"""

from db.engine import ConnectionParams, DatabaseHandle, open_connection      # noqa: F401
from db.dialects import ColumnDescriptor, Dialect, get_dialect              # noqa: F401
