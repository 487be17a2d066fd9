"""Shared plumbing for the batch rebuild services."""
from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Any

from fundscope.core.metrics import metrics

_MAX_QUERY_PARAMS = 30000
_DEFAULT_COLUMN_OVERHEAD = 2


@dataclass
class BatchResult:
    """Tally for one continue-on-error batch run."""
    job: str
    processed: int = 0
    errors: int = 0
    skipped: int = 0
    not_found: int = 0
    started: float = field(default_factory=time.monotonic)

    def fail(self, subject: str, error: Exception) -> None:
        self.errors += 1
        metrics.unit_failed(self.job, subject, str(error))

    def finish(self) -> "BatchResult":
        duration_ms = (time.monotonic() - self.started) * 1000
        metrics.job_completed(
            self.job,
            processed=self.processed,
            errors=self.errors,
            skipped=self.skipped,
            not_found=self.not_found,
            duration_ms=duration_ms,
        )
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "errors": self.errors,
            "skipped": self.skipped,
            "not_found": self.not_found,
        }


def to_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(numeric):
        return None
    return numeric


def chunk_rows(rows: list[dict[str, Any]]) -> list[list[dict[str, Any]]]:
    """Split rows so one INSERT stays under the driver's bind-parameter limit."""
    if not rows:
        return []
    row_size = max(1, len(rows[0]) + _DEFAULT_COLUMN_OVERHEAD)
    batch_size = max(1, min(2000, _MAX_QUERY_PARAMS // row_size))
    return [rows[i : i + batch_size] for i in range(0, len(rows), batch_size)]
