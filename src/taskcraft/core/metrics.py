"""Operation metrics: records, an in-memory sink and aggregation helpers."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from statistics import mean, median
from typing import Any, Dict, Iterable, List, Optional, Protocol
import json
import time


@dataclass
class OperationMetrics:
    operation: str
    duration_ms: float
    success: bool
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "duration_ms": round(self.duration_ms, 3),
            "success": self.success,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class MetricsSink(Protocol):
    """Anything that accepts one metrics record per engine call."""

    def record_operation_metrics(self, metrics: OperationMetrics) -> Any: ...


def log_record(record: OperationMetrics, path: Path) -> None:
    """Append a single metrics record to a JSONL file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(record.to_dict(), default=str) + "\n")


def summarize_operations(records: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Aggregate basic metrics from operation records.

    Expects dictionaries with keys: operation, duration_ms, success.
    Missing keys are treated as falsy/zero where applicable.
    """

    recs: List[Dict[str, Any]] = list(records)
    if not recs:
        return {
            "count": 0,
            "successes": 0,
            "success_rate": 0.0,
            "avg_duration_ms": 0.0,
            "median_duration_ms": 0.0,
            "operations": {},
        }

    durations = [float(r.get("duration_ms", 0.0)) for r in recs]
    successes = [bool(r.get("success", False)) for r in recs]

    per_operation: Dict[str, int] = {}
    for r in recs:
        name = str(r.get("operation", "unknown"))
        per_operation[name] = per_operation.get(name, 0) + 1

    return {
        "count": len(recs),
        "successes": sum(successes),
        "success_rate": round(sum(successes) / len(recs), 3),
        "avg_duration_ms": round(mean(durations), 3),
        "median_duration_ms": round(median(durations), 3),
        "operations": per_operation,
    }


class MetricsCollector:
    """In-memory metrics sink, optionally mirrored to a JSONL file."""

    def __init__(self, path: Optional[str | Path] = None):
        self.path = Path(path) if path else None
        self.records: List[OperationMetrics] = []

    def record_operation_metrics(self, metrics: OperationMetrics) -> OperationMetrics:
        self.records.append(metrics)
        if self.path is not None:
            log_record(metrics, self.path)
        return metrics

    def summarize(self) -> Dict[str, Any]:
        return summarize_operations(r.to_dict() for r in self.records)


class Timer:
    """Simple context manager to measure wall-clock duration."""

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.end = time.perf_counter()
        self.duration = self.end - self.start

    @property
    def seconds(self) -> float:
        return getattr(self, "duration", 0.0)

    @property
    def milliseconds(self) -> float:
        return self.seconds * 1000.0
