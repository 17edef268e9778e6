"""Example script demonstrating the batch operations API."""

import asyncio
import random

from taskcraft.batch import BatchEvent, BatchOperations, DeleteRef, UpdateRef
from taskcraft.core.config import BatchConfig
from taskcraft.core.logging import configure_logging


class TaskStore:
    """Toy in-memory task store standing in for the real repository."""

    def __init__(self):
        self.tasks = {}
        self._next_id = 1

    async def create(self, task):
        await asyncio.sleep(0.005)
        if not task.get("title"):
            raise ValueError("Task title is required")
        task_id = self._next_id
        self._next_id += 1
        self.tasks[task_id] = {"id": task_id, **task}
        return self.tasks[task_id]

    async def update(self, task_id, patch):
        await asyncio.sleep(0.005)
        if task_id not in self.tasks:
            raise KeyError(f"Task {task_id} not found")
        self.tasks[task_id].update(patch)
        return self.tasks[task_id]

    async def delete(self, task_id):
        await asyncio.sleep(0.005)
        return self.tasks.pop(task_id, None) is not None


async def example_1_batch_create(ops, store):
    """Example 1: Create tasks in batches, one of them invalid."""
    print("\n" + "=" * 60)
    print("Example 1: Batch Create")
    print("=" * 60)

    tasks = [{"title": f"Task {i}", "status": "pending"} for i in range(1, 25)]
    tasks.append({"status": "pending"})

    summary = await ops.batch_create(tasks, repository=store, batch_size=10)
    print(f"✅ Created {summary.succeeded}/{summary.operations} tasks ({summary.success_rate:.1f}%)")
    for result in summary.results:
        if not result.success:
            print(f"   ✗ {result.item}: {result.error}")


async def example_2_batch_update(ops, store):
    """Example 2: Update with explicit references and event listeners."""
    print("\n" + "=" * 60)
    print("Example 2: Batch Update with events")
    print("=" * 60)

    ops.on(
        BatchEvent.OPERATION_COMPLETE,
        lambda event: print(f"   batch {event.batch_index} done: {event.progress['percentage']}%"),
    )

    refs = [UpdateRef(id=task_id, patch={"status": "done"}) for task_id in list(store.tasks)[:12]]
    refs.append(UpdateRef(id=999, patch={"status": "done"}))

    summary = await ops.batch_update(refs, repository=store, batch_size=4, max_concurrent=2)
    print(f"✅ Updated {summary.succeeded}, failed {summary.failed} in {summary.duration_ms:.1f}ms")


async def example_3_mixed(ops, store):
    """Example 3: Mixed create/delete/custom operations in one call."""
    print("\n" + "=" * 60)
    print("Example 3: Mixed batch")
    print("=" * 60)

    operations = [
        {"kind": "create", "data": {"title": "Write release notes"}},
        {"kind": "delete", "data": DeleteRef(id=1)},
        {"kind": "custom", "data": "estimate"},
    ]

    summary = await ops.batch_process(
        operations,
        repository=store,
        kind_options={"custom": {"processor": lambda _: random.randint(1, 8)}},
    )
    print(f"✅ {summary.operations} operations across {summary.metadata['kinds']}")
    for kind, sub in summary.kind_results.items():
        print(f"   {kind}: {sub.succeeded} ok, {sub.failed} failed")


async def example_4_adaptive(ops, store):
    """Example 4: Let the engine pick batch size and concurrency."""
    print("\n" + "=" * 60)
    print("Example 4: Adaptive sizing")
    print("=" * 60)

    items = [{"id": task_id, "priority": "high"} for task_id in store.tasks]
    summary = await ops.execute_with_optimal_size(items, repository=store)
    print(f"✅ {summary.succeeded}/{summary.operations} updated with {summary.metadata.get('sizing')}")


async def main():
    configure_logging("WARNING")
    store = TaskStore()
    ops = BatchOperations(config=BatchConfig(retry_delay_ms=100))

    await example_1_batch_create(ops, store)
    await example_2_batch_update(ops, store)
    await example_3_mixed(ops, store)
    await example_4_adaptive(ops, store)

    print("\nMetrics:", ops.metrics.summarize())


if __name__ == "__main__":
    asyncio.run(main())
