"""
import_engine.progress - Row counts → (percent, text) notifications.

Reported once per committed batch.  The sink is fire-and-forget; with
no sink attached, reporting does nothing but log at DEBUG.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ProgressSink = Callable[[int, str], None]


def progress_for(processed: int, total: int) -> tuple[int, str]:
    if total <= 0:
        return 100, "No data rows to import"
    percent = max(0, min(100, processed * 100 // total))
    return percent, f"Imported {processed}/{total} rows ({percent}%)"


class ProgressReporter:

    def __init__(self, sink: Optional[ProgressSink] = None):
        self.sink = sink

    def report(self, processed: int, total: int) -> tuple[int, str]:
        percent, message = progress_for(processed, total)
        logger.debug(message)
        if self.sink is not None:
            self.sink(percent, message)
        return percent, message
