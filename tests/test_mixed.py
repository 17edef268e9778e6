"""Tests for mixed-kind batch processing."""

import pytest

from taskcraft.batch import BatchEvent, DeleteRef, MixedBatchProcessor, OperationDescriptor


@pytest.mark.asyncio
async def test_create_and_delete_merge_into_one_summary(scheduler, repo):
    processor = MixedBatchProcessor(scheduler)
    summary = await processor.batch_process(
        [{"kind": "create", "data": {"title": "write docs"}}, {"kind": "delete", "data": 5}],
        repository=repo,
    )

    assert summary.success
    assert summary.kind == "mixed"
    assert summary.operations == 2
    assert summary.succeeded == 2
    assert set(summary.kind_results) == {"create", "delete"}
    assert summary.kind_results["delete"].results[0].item_id == 5


@pytest.mark.asyncio
async def test_results_grouped_in_first_appearance_order(ops, repo):
    operations = [
        {"kind": "delete", "data": 1},
        {"type": "update", "data": {"id": 2}},
        OperationDescriptor(kind="delete", data=DeleteRef(id=3)),
        {"kind": "update", "data": {"id": 4}},
    ]
    summary = await ops.batch_process(operations, repository=repo)

    assert summary.metadata["kinds"] == ["delete", "update"]
    assert [r.item_id for r in summary.results] == [1, 3, 2, 4]
    assert summary.operations == 4


@pytest.mark.asyncio
async def test_kind_options_override_shared_options(ops, repo):
    summary = await ops.batch_process(
        [{"kind": "custom", "data": 2}, {"kind": "update", "data": {"id": 1}}],
        kind_options={"custom": {"processor": lambda v: v * 3}},
        repository=repo,
    )

    assert summary.succeeded == 2
    assert summary.kind_results["custom"].results[0].result == 6


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "bad",
    [{"kind": "create"}, {"data": 1}, {"kind": "", "data": 1}, {"kind": "delete", "data": None}],
)
async def test_descriptor_without_kind_or_data(ops, repo, collector, bad):
    seen = []
    ops.on(BatchEvent.BATCH_ERROR, seen.append)
    operations = [{"kind": "delete", "data": 1}, bad]
    summary = await ops.batch_process(operations, repository=repo)

    assert not summary.success
    assert summary.error_type == "ValidationError"
    assert summary.operations == summary.failed == 2
    assert repo.calls == []
    assert [r.operation for r in collector.records] == ["batch_mixed"]
    assert not collector.records[0].success
    assert collector.records[0].details["total_operations"] == 2
    assert [(e.kind, e.error_type) for e in seen] == [("mixed", "ValidationError")]


@pytest.mark.asyncio
async def test_non_iterable_operations_rejected(ops, collector):
    summary = await ops.batch_process(7)

    assert not summary.success
    assert summary.error_type == "ValidationError"
    assert summary.operations == summary.failed == 1
    assert collector.records[0].operation == "batch_mixed"


@pytest.mark.asyncio
async def test_unknown_kind_in_mixed_batch(ops, repo):
    summary = await ops.batch_process(
        [{"kind": "delete", "data": 1}, {"kind": "teleport", "data": 2}], repository=repo
    )

    assert not summary.success
    assert summary.error_type == "UnknownOperationType"
    assert summary.kind_results["delete"].succeeded == 1
    assert summary.operations == 2
    assert summary.failed == 1


@pytest.mark.asyncio
async def test_empty_operations(ops):
    summary = await ops.batch_process([])
    assert summary.success
    assert summary.operations == 0


@pytest.mark.asyncio
async def test_mixed_metrics_recorded(ops, repo, collector):
    await ops.batch_process(
        [{"kind": "delete", "data": 1}, {"kind": "update", "data": {"id": 2}}], repository=repo
    )
    operations = [r.operation for r in collector.records]
    assert operations.count("batch_mixed") == 1
    assert "batch_delete" in operations
    assert "batch_update" in operations
