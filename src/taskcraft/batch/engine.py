"""Batch operations facade: one object wiring the scheduler, mixed batches,
adaptive sizing, events and metrics together."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Union

import structlog

from ..core.config import BatchConfig
from ..core.metrics import MetricsCollector, MetricsSink
from .adaptive import AdaptiveSizer
from .events import BatchEvent, EventBus, Listener
from .handlers import Processor
from .mixed import MixedBatchProcessor
from .models import BatchSummary
from .registry import OperationRegistry, default_registry
from .scheduler import BatchScheduler

logger = structlog.get_logger(__name__)


class BatchOperations:
    """Entry point for running task operations in batches.

    Example:
        ops = BatchOperations(config=BatchConfig(batch_size=20))
        summary = await ops.batch_update(tasks, repository=store)
    """

    def __init__(
        self,
        config: Optional[BatchConfig] = None,
        registry: Optional[OperationRegistry] = None,
        metrics: Optional[MetricsSink] = None,
        events: Optional[EventBus] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize batch operations.

        Args:
            config: Engine defaults (read from ``BATCH_*`` env vars if None)
            registry: Operation registry (standard kinds if None)
            metrics: Metrics sink (in-memory collector if None)
            events: Event bus for lifecycle notifications
            sleep: Backoff sleep, in seconds
        """
        self.config = config or BatchConfig.from_env()
        self.registry = registry if registry is not None else default_registry()
        self.metrics = metrics if metrics is not None else MetricsCollector()
        self.events = events or EventBus()
        self.scheduler = BatchScheduler(
            registry=self.registry,
            config=self.config,
            events=self.events,
            metrics=self.metrics,
            sleep=sleep,
        )
        self.mixed = MixedBatchProcessor(self.scheduler)
        self.sizer = AdaptiveSizer(self.scheduler)
        logger.debug("batch_operations_initialized", **self.config.to_dict())

    def on(self, event: Union[BatchEvent, str], listener: Listener) -> Listener:
        return self.events.on(event, listener)

    def off(self, event: Union[BatchEvent, str], listener: Listener) -> bool:
        return self.events.off(event, listener)

    async def execute(self, kind: str, items: Iterable[Any], **options: Any) -> BatchSummary:
        return await self.scheduler.execute(kind, items, **options)

    async def batch_create(self, items: Iterable[Any], **options: Any) -> BatchSummary:
        return await self.execute("create", items, **options)

    async def batch_update(self, items: Iterable[Any], **options: Any) -> BatchSummary:
        return await self.execute("update", items, **options)

    async def batch_delete(self, items: Iterable[Any], **options: Any) -> BatchSummary:
        return await self.execute("delete", items, **options)

    async def batch_custom(
        self, items: Iterable[Any], processor: Processor, **options: Any
    ) -> BatchSummary:
        return await self.execute("custom", items, processor=processor, **options)

    async def batch_process(
        self,
        operations: Iterable[Any],
        kind_options: Optional[Mapping[str, Mapping[str, Any]]] = None,
        **options: Any,
    ) -> BatchSummary:
        return await self.mixed.batch_process(operations, kind_options=kind_options, **options)

    async def execute_with_optimal_size(
        self, items: Iterable[Any], kind: str = "update", **options: Any
    ) -> BatchSummary:
        return await self.sizer.execute_with_optimal_size(items, kind=kind, **options)
