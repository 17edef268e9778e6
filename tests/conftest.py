"""Shared fixtures for batch engine tests."""

from __future__ import annotations

import pytest

from taskcraft.batch import BatchOperations, BatchScheduler, EventBus, default_registry
from taskcraft.core.config import BatchConfig
from taskcraft.core.metrics import MetricsCollector


class InMemoryRepository:
    """Async repository that records every call and can fail selected ids."""

    def __init__(self, fail_ids=()):
        self.fail_ids = set(fail_ids)
        self.calls = []
        self.rows = {}
        self._next_id = 1

    async def create(self, item):
        self.calls.append(("create", item))
        if item.get("title") == "explode":
            raise RuntimeError("create failed")
        new_id = self._next_id
        self._next_id += 1
        self.rows[new_id] = dict(item)
        return new_id

    async def update(self, id, item):
        self.calls.append(("update", id))
        if id in self.fail_ids:
            raise RuntimeError(f"update failed for {id}")
        self.rows[id] = dict(item)
        return {"id": id, "updated": True}

    async def delete(self, id):
        self.calls.append(("delete", id))
        if id in self.fail_ids:
            raise KeyError(id)
        return True


class NoSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def no_sleep():
    return NoSleep()


@pytest.fixture
def collector():
    return MetricsCollector()


@pytest.fixture
def scheduler(no_sleep, collector):
    return BatchScheduler(
        registry=default_registry(),
        config=BatchConfig(retry_delay_ms=10),
        events=EventBus(),
        metrics=collector,
        sleep=no_sleep,
    )


@pytest.fixture
def ops(no_sleep, collector):
    return BatchOperations(config=BatchConfig(retry_delay_ms=10), metrics=collector, sleep=no_sleep)


@pytest.fixture
def make_repo():
    """Factory for repositories that fail on selected ids."""
    return InMemoryRepository
