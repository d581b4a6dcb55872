"""
Metrics and logging for the economy engine.

Counts batch outcomes (aggregations, recalculations) and logs them.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, asdict
from datetime import datetime, UTC
from typing import Any, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Attach a stream handler to the named logger if it has none."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger


@dataclass
class MetricEvent:
    """A single metric event."""
    timestamp: str
    event_type: str  # aggregation, aggregation_failure, recalculation, recalculation_failure
    entity_id: str
    data: dict[str, Any]


class EngineMetrics:
    """
    In-memory counters for engine batch operations.

    Pass one to the batch entry points to collect per-entity outcomes.
    """

    def __init__(self, enable_logging: bool = True):
        self.enable_logging = enable_logging
        self.logger = configure_logger("economy.metrics") if enable_logging else logging.getLogger("economy.metrics")

        self._events: list[MetricEvent] = []
        self._counters: dict[str, int] = defaultdict(int)
        self._histograms: dict[str, list[float]] = defaultdict(list)

    def record_aggregation(self, user_id: str, approved_hours: float) -> None:
        self._record_event("aggregation", user_id, {"approved_hours": approved_hours})
        self._counters["aggregations_total"] += 1
        self._histograms["approved_hours"].append(approved_hours)

    def record_aggregation_failure(self, user_id: str, error: Exception) -> None:
        self._record_event(
            "aggregation_failure",
            user_id,
            {"error_type": type(error).__name__, "error_message": str(error)},
        )
        self._counters["aggregations_total"] += 1
        self._counters["aggregation_failures_total"] += 1

    def record_recalculation(self, item_id: str, old_price: int, new_price: int) -> None:
        self._record_event(
            "recalculation",
            item_id,
            {"old_price": old_price, "new_price": new_price},
        )
        self._counters["recalculations_total"] += 1
        if old_price != new_price:
            self._counters["prices_changed_total"] += 1

    def record_recalculation_failure(self, item_id: str, error: Exception) -> None:
        self._record_event(
            "recalculation_failure",
            item_id,
            {"error_type": type(error).__name__, "error_message": str(error)},
        )
        self._counters["recalculations_total"] += 1
        self._counters["recalculation_failures_total"] += 1

    def _record_event(self, event_type: str, entity_id: str, data: dict) -> None:
        event = MetricEvent(
            timestamp=datetime.now(UTC).isoformat(),
            event_type=event_type,
            entity_id=entity_id,
            data=data,
        )
        self._events.append(event)

        if self.enable_logging:
            if event_type.endswith("_failure"):
                self.logger.warning(f"{event_type.upper()}: id={entity_id}, data={data}")
            else:
                self.logger.info(f"{event_type.upper()}: id={entity_id}, data={data}")

    def events(self, event_type: Optional[str] = None) -> list[dict]:
        return [
            asdict(e) for e in self._events
            if event_type is None or e.event_type == event_type
        ]

    def get_stats(self) -> dict:
        """
        Get aggregated statistics.

        Returns:
            Dictionary with counters and approved-hours summary
        """
        hours = self._histograms.get("approved_hours", [])
        return {
            "counters": dict(self._counters),
            "approved_hours": {
                "count": len(hours),
                "total": sum(hours),
                "max": max(hours) if hours else 0,
            },
            "total_events": len(self._events),
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._events.clear()
        self._counters.clear()
        self._histograms.clear()
