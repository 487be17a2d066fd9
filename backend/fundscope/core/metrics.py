"""
Metrics emission system for observability.

Provides structured metrics for:
- Batch job completion (scores, fund aggregates, caches, NAV returns)
- Per-unit failures inside a batch
- Data quality warnings (low fund coverage, holding weights off 100%)

Metrics are emitted to:
1. Python logging (immediate visibility)
2. In-memory buffer (API aggregation)
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


@dataclass
class MetricEvent:
    """Structured metric event."""
    timestamp: datetime
    category: str          # "pipeline", "data_quality"
    event_type: str        # "job_completed", "low_coverage", etc.
    subject: Optional[str]  # symbol or fund name the event is about
    value: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "category": self.category,
            "event_type": self.event_type,
            "subject": self.subject,
            "value": self.value,
            "metadata": self.metadata
        }


class MetricsEmitter:
    """
    Emit structured metrics to logging and a bounded buffer.
    """

    CATEGORY_PIPELINE = "pipeline"
    CATEGORY_DATA_QUALITY = "data_quality"

    def __init__(self, buffer_size: int = 1000):
        """
        Initialize metrics emitter.

        Args:
            buffer_size: Max events to keep in memory buffer
        """
        self.buffer_size = buffer_size
        self._buffer: List[MetricEvent] = []
        self._enabled = True

    def enable(self) -> None:
        """Enable metrics emission."""
        self._enabled = True

    def disable(self) -> None:
        """Disable metrics emission (for testing)."""
        self._enabled = False

    def emit(
        self,
        category: str,
        event_type: str,
        value: float,
        subject: str = None,
        metadata: dict = None
    ) -> Optional[MetricEvent]:
        """
        Emit a metric event.

        Args:
            category: Event category (pipeline, data_quality)
            event_type: Specific event type within category
            value: Numeric value (count, percentage, ...)
            subject: Optional symbol or fund name
            metadata: Additional context as key-value pairs

        Returns:
            The emitted MetricEvent
        """
        if not self._enabled:
            return None

        event = MetricEvent(
            timestamp=datetime.now(timezone.utc),
            category=category,
            event_type=event_type,
            subject=subject,
            value=value,
            metadata=metadata or {}
        )

        meta_str = f" {metadata}" if metadata else ""
        logger.info(
            "METRIC [%s/%s] subject=%s value=%s%s",
            category, event_type, subject, value, meta_str,
        )

        self._buffer.append(event)
        if len(self._buffer) > self.buffer_size:
            self._buffer = self._buffer[-self.buffer_size:]

        return event

    # =========================================================================
    # Convenience methods for common metrics
    # =========================================================================

    def job_completed(self, job: str, processed: int, errors: int,
                      skipped: int = 0, not_found: int = 0,
                      duration_ms: float = 0.0) -> Optional[MetricEvent]:
        """Record batch job completion."""
        return self.emit(
            self.CATEGORY_PIPELINE, "job_completed", processed,
            subject=job,
            metadata={
                "errors": errors,
                "skipped": skipped,
                "not_found": not_found,
                "duration_ms": round(duration_ms, 2)
            }
        )

    def unit_failed(self, job: str, subject: str, error: str) -> Optional[MetricEvent]:
        """Record a single failed unit of work inside a batch."""
        return self.emit(
            self.CATEGORY_PIPELINE, "unit_failed", 1.0,
            subject=subject,
            metadata={"job": job, "error": error}
        )

    def low_coverage(self, fund_name: str, coverage_pct: float,
                     threshold: float) -> Optional[MetricEvent]:
        """Record a fund scored from less than the threshold share of NAV."""
        return self.emit(
            self.CATEGORY_DATA_QUALITY, "low_coverage", coverage_pct,
            subject=fund_name,
            metadata={"threshold": threshold}
        )

    def weight_total_off(self, fund_name: str, total_weight: float,
                         tolerance: float) -> Optional[MetricEvent]:
        """Record a fund whose holding weights do not sum to ~100%."""
        return self.emit(
            self.CATEGORY_DATA_QUALITY, "weight_total_off", total_weight,
            subject=fund_name,
            metadata={"tolerance": tolerance}
        )

    # =========================================================================
    # Aggregation methods
    # =========================================================================

    def get_buffer(self) -> List[MetricEvent]:
        """Get buffered events (for API)."""
        return list(self._buffer)

    def get_summary(self, hours: int = 24) -> dict:
        """
        Get aggregated summary of recent metrics.

        Args:
            hours: How many hours of data to include

        Returns:
            Dictionary with aggregated metrics
        """
        cutoff = datetime.now(timezone.utc) - timedelta(hours=hours)
        recent = [e for e in self._buffer if e.timestamp >= cutoff]

        by_category: Dict[str, int] = {}
        by_event: Dict[str, int] = {}
        last_runs: Dict[str, str] = {}

        for event in recent:
            by_category[event.category] = by_category.get(event.category, 0) + 1
            key = f"{event.category}/{event.event_type}"
            by_event[key] = by_event.get(key, 0) + 1
            if event.event_type == "job_completed" and event.subject:
                last_runs[event.subject] = event.timestamp.isoformat()

        return {
            "period_hours": hours,
            "total_events": len(recent),
            "by_category": by_category,
            "by_event": by_event,
            "jobs_completed": by_event.get("pipeline/job_completed", 0),
            "units_failed": by_event.get("pipeline/unit_failed", 0),
            "low_coverage_funds": by_event.get("data_quality/low_coverage", 0),
            "last_runs": last_runs,
        }

    def clear_buffer(self) -> int:
        """Clear buffer and return count of cleared events."""
        count = len(self._buffer)
        self._buffer = []
        return count


# Global singleton instance
metrics = MetricsEmitter()
