"""Tests for metrics helper functions."""

from taskcraft.core.metrics import (
    MetricsCollector,
    OperationMetrics,
    Timer,
    summarize_operations,
)


def test_summarize_operations_empty():
    summary = summarize_operations([])
    assert summary["count"] == 0
    assert summary["success_rate"] == 0.0


def test_summarize_operations_values():
    records = [
        OperationMetrics(operation="batch_create", duration_ms=10.0, success=True).to_dict(),
        OperationMetrics(operation="batch_update", duration_ms=30.0, success=False).to_dict(),
        OperationMetrics(operation="batch_update", duration_ms=20.0, success=True).to_dict(),
    ]

    summary = summarize_operations(records)

    assert summary["count"] == 3
    assert summary["successes"] == 2
    assert summary["success_rate"] == round(2 / 3, 3)
    assert summary["avg_duration_ms"] == 20.0
    assert summary["median_duration_ms"] == 20.0
    assert summary["operations"] == {"batch_create": 1, "batch_update": 2}


def test_collector_writes_jsonl(tmp_path):
    path = tmp_path / "metrics" / "ops.jsonl"
    collector = MetricsCollector(path=path)

    collector.record_operation_metrics(
        OperationMetrics(operation="batch_delete", duration_ms=5.0, success=True)
    )
    collector.record_operation_metrics(
        OperationMetrics(operation="batch_delete", duration_ms=7.0, success=True)
    )

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert '"batch_delete"' in lines[0]
    assert collector.summarize()["count"] == 2


def test_timer_measures():
    with Timer() as t:
        sum(range(1000))
    assert t.seconds >= 0.0
    assert t.milliseconds == t.seconds * 1000.0
