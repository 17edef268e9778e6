"""Simple tests for batch data types that don't need an event loop."""

import pytest

from taskcraft.batch.models import (
    BatchSummary,
    DeleteRef,
    ItemResult,
    OperationDescriptor,
    UpdateRef,
)
from taskcraft.batch.progress import ProgressTracker
from taskcraft.batch.scheduler import partition


def test_progress_tracker():
    """Test progress tracking functionality."""
    tracker = ProgressTracker(total=10)

    assert tracker.percentage == 0.0
    assert tracker.processed == 0

    tracker.record([ItemResult.ok(i) for i in range(4)], batch_index=0)
    assert tracker.processed == 4
    assert tracker.successful == 4
    assert tracker.batches_done == 1
    assert tracker.percentage == 40.0

    tracker.record([ItemResult.failure(i, "nope") for i in range(6)], batch_index=1)
    assert tracker.processed == 10
    assert tracker.failed == 6
    assert tracker.current_batch == 1
    assert tracker.percentage == 100.0

    data = tracker.to_dict()
    assert data["total"] == 10
    assert data["successful"] == 4
    assert data["failed"] == 6
    assert data["batches_done"] == 2


def test_progress_tracker_empty_total():
    assert ProgressTracker(total=0).percentage == 100.0


@pytest.mark.parametrize("n,b", [(1, 1), (10, 3), (9, 3), (50, 50), (101, 50), (7, 100)])
def test_partition_counts(n, b):
    batches = partition(list(range(n)), b)
    expected = -(-n // b)
    assert len(batches) == expected
    assert len(batches[-1]) == (n - b * (n // b) or b)
    assert [x for batch in batches for x in batch] == list(range(n))


def test_summary_counts_and_rate():
    results = [ItemResult.ok("a"), ItemResult.failure("b", "bad"), ItemResult.ok("c")]
    summary = BatchSummary.from_results(results, kind="custom", duration_ms=500.0)

    assert summary.operations == 3
    assert summary.succeeded == 2
    assert summary.failed == 1
    assert summary.success_rate == pytest.approx(200 / 3)
    assert summary.items_per_second == pytest.approx(6.0)
    assert summary.operations_per_second == summary.items_per_second


def test_failure_summary_keeps_counts_consistent():
    summary = BatchSummary.failure([1, 2, 3], RuntimeError("down"), kind="update")

    assert not summary.success
    assert summary.operations == summary.succeeded + summary.failed == 3
    assert summary.error == "down"
    assert summary.error_type == "RuntimeError"
    assert [r.item for r in summary.results] == [1, 2, 3]


def test_item_result_failure_without_message():
    result = ItemResult.failure("x", ValueError())
    assert result.error == "ValueError"
    assert "result" not in result.to_dict()


def test_update_ref_from_item():
    assert UpdateRef.from_item({"id": 3, "title": "t"}) == UpdateRef(id=3, patch={"id": 3, "title": "t"})
    assert UpdateRef.from_item({"title": "t"}) is None
    assert UpdateRef.from_item({"id": None}) is None
    assert UpdateRef.from_item({"task_id": 9}, id_field="task_id").id == 9


def test_delete_ref_from_item():
    assert DeleteRef.from_item(5) == DeleteRef(id=5)
    assert DeleteRef.from_item("abc") == DeleteRef(id="abc")
    assert DeleteRef.from_item({"id": 7}) == DeleteRef(id=7)
    assert DeleteRef.from_item({"name": "x"}) is None
    assert DeleteRef.from_item(DeleteRef(id=1)) == DeleteRef(id=1)


def test_operation_descriptor_accepts_type_alias():
    descriptor = OperationDescriptor.model_validate({"type": "delete", "data": 5})
    assert descriptor.kind == "delete"
    assert descriptor.data == 5
