"""Metrics tracking for ingestion runs."""

import time
from collections import defaultdict
from typing import Any, Dict, Optional

from newsingest.utils.date_utils import now_utc
from newsingest.utils.logging import get_logger

logger = get_logger(__name__)


class MetricsTracker:
    """Track stage timings and counters across an ingestion run."""

    def __init__(self) -> None:
        self.metrics: Dict[str, Any] = defaultdict(int)
        self.timers: Dict[str, float] = {}
        self.stage_metrics: Dict[str, Dict[str, Any]] = {}
        self.start_time: Optional[float] = None

    def start_run(self) -> None:
        """Reset all metrics and mark the start of a run."""
        self.start_time = time.perf_counter()
        self.metrics.clear()
        self.timers.clear()
        self.stage_metrics.clear()

    def start_timer(self, timer_name: str) -> None:
        self.timers[timer_name] = time.perf_counter()

    def stop_timer(self, timer_name: str) -> float:
        """Stop a named timer.

        Returns:
            Elapsed seconds, or 0 if the timer was never started.
        """
        started = self.timers.pop(timer_name, None)
        if started is None:
            return 0.0
        return time.perf_counter() - started

    def increment(self, metric_name: str, value: int = 1) -> None:
        self.metrics[metric_name] += value

    def record_stage_metrics(self, stage_name: str, metrics: Dict[str, Any]) -> None:
        """Record and log the metrics of one stage."""
        self.stage_metrics[stage_name] = {**metrics, "timestamp": now_utc().isoformat()}
        logger.info("stage_metrics", stage=stage_name, **metrics)

    def get_run_duration(self) -> float:
        if self.start_time is None:
            return 0.0
        return time.perf_counter() - self.start_time

    def get_metrics_summary(self) -> Dict[str, Any]:
        return {
            "run_duration_seconds": round(self.get_run_duration(), 2),
            "overall_metrics": dict(self.metrics),
            "stage_metrics": dict(self.stage_metrics),
        }

    def log_metrics_summary(self) -> None:
        summary = self.get_metrics_summary()
        logger.info(
            "run_metrics_summary",
            duration_seconds=summary["run_duration_seconds"],
            overall_metrics=summary["overall_metrics"],
            stage_count=len(summary["stage_metrics"]),
        )

    def check_health(self) -> Dict[str, Any]:
        """Derive a run health status from feed and item failure rates.

        Returns:
            Dict with `status` (healthy, degraded or unhealthy), `warnings`
            and `errors`.
        """
        health: Dict[str, Any] = {"status": "healthy", "warnings": [], "errors": []}

        feeds = self.metrics.get("feeds_fetched", 0)
        failed_feeds = self.metrics.get("feeds_failed", 0)
        if feeds and failed_feeds == feeds:
            health["status"] = "unhealthy"
            health["errors"].append(f"All {feeds} feeds failed")
        elif failed_feeds:
            health["status"] = "degraded"
            health["warnings"].append(f"{failed_feeds} of {feeds} feeds failed")

        processed = self.metrics.get("items_processed", 0)
        errors = self.metrics.get("items_errored", 0)
        if processed:
            error_rate = round(errors / processed * 100, 2)
            if error_rate >= 50:
                health["status"] = "unhealthy"
                health["errors"].append(f"Item error rate critically high: {error_rate}%")
            elif error_rate >= 20:
                if health["status"] == "healthy":
                    health["status"] = "degraded"
                health["warnings"].append(f"Item error rate above target: {error_rate}%")

        fallbacks = self.metrics.get("enrichment_fallbacks", 0)
        if fallbacks:
            health["warnings"].append(f"{fallbacks} enrichment calls used fallback values")

        return health
