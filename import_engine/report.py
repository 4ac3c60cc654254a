"""
import_engine.report - Structured result of an import run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from errors import ImportEngineError


@dataclass
class ImportOutcome:
    total_rows: int = 0
    success_count: int = 0
    isolated_rows: int = 0          # committed one by one before a failure
    failure: Optional[ImportEngineError] = None
    progress: list[dict] = field(default_factory=list)   # [{percent, message}]

    @property
    def ok(self) -> bool:
        return self.failure is None

    def fail(self, error: ImportEngineError) -> "ImportOutcome":
        self.failure = error
        self.isolated_rows = getattr(error, "committed_rows", 0)
        return self

    def summary(self) -> str:
        if self.failure is not None:
            return str(self.failure)
        return f"{self.total_rows} rows, {self.success_count} imported"

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "total_rows": self.total_rows,
            "success_count": self.success_count,
            "isolated_rows": self.isolated_rows,
            "summary": self.summary(),
            "error": self.failure.to_dict() if self.failure else None,
            "progress": self.progress,
        }
