"""
import_engine - Spreadsheet / CSV → existing table import pipeline.

Public API:
    run_import(params, file_path, table, truncate=False, progress=None) → ImportOutcome
    import_grid(handle, grid, table, ...)                                → ImportOutcome
"""

from import_engine.importer import run_import, import_grid          # noqa: F401
from import_engine.report import ImportOutcome                      # noqa: F401
