"""Batch scheduler: partitioning, bounded concurrency, retry and aggregation."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable, Mapping
from typing import Any, Awaitable, Callable, List, Optional, Sequence

import structlog

from ..core.config import BatchConfig
from ..core.errors import BatchError, ValidationError
from ..core.metrics import MetricsSink, OperationMetrics
from .events import (
    BatchCompleted,
    BatchEvent,
    BatchFailed,
    BatchStarted,
    EventBus,
    OperationCompleted,
    OperationFailed,
    OperationStarted,
)
from .handlers import OperationHandler
from .models import BatchSummary, ItemResult
from .progress import ProgressTracker
from .registry import OperationRegistry, default_registry
from .retry import execute_with_retry

logger = structlog.get_logger(__name__)


def collect_items(items: Any) -> List[Any]:
    """Materialize a caller-supplied collection; ``None`` means no items."""
    if items is None:
        return []
    if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
        raise ValidationError("Items must be a sequence of items")
    try:
        return list(items)
    except Exception as e:
        raise ValidationError(f"Items could not be read: {e}") from e


def partition(items: Sequence[Any], batch_size: int) -> List[List[Any]]:
    """Split ``items`` into contiguous, order-preserving batches."""
    if batch_size < 1:
        raise ValidationError(f"batch_size must be >= 1, got {batch_size}")
    return [list(items[i : i + batch_size]) for i in range(0, len(items), batch_size)]


class BatchScheduler:
    """Runs one operation kind over a collection of items.

    Batches are admitted under an ``asyncio.Semaphore(max_concurrent)``; each
    batch is retried as a unit with exponential backoff. Results land in a
    pre-sized list at the batch's index, so output order always matches
    input order regardless of completion order.

    There is no cancellation or per-call timeout: a handler call that never
    returns keeps its batch (and the ``execute`` call) waiting.
    """

    def __init__(
        self,
        registry: Optional[OperationRegistry] = None,
        config: Optional[BatchConfig] = None,
        events: Optional[EventBus] = None,
        metrics: Optional[MetricsSink] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.registry = registry if registry is not None else default_registry()
        self.config = config or BatchConfig()
        self.events = events or EventBus()
        self.metrics = metrics
        self._sleep = sleep

    async def execute(
        self, kind: str, items: Optional[Iterable[Any]], **options: Any
    ) -> BatchSummary:
        """Process ``items`` with the handler registered for ``kind``.

        ``options`` may override any ``BatchConfig`` field; every other key
        is passed to the handler constructor (``repository``, ``processor``,
        ``validate_item``, ``id_field``...). Never raises: failures come back
        as a summary with ``success=False`` or as failed item results.
        """
        if not self.config.enabled:
            return BatchSummary.empty(kind=kind, message="Batch operations are disabled")

        try:
            item_list = collect_items(items)
        except ValidationError as error:
            return self.reject(kind, items, error)

        if not item_list:
            return BatchSummary.empty(kind=kind, message="No items to process")

        started = time.perf_counter()
        config = self.config
        try:
            factory = self.registry.get_handler(kind)
            overrides, handler_options = BatchConfig.split(options)
            config = self.config.merge(overrides)
            handler = factory(**handler_options)

            if not handler.validate(item_list):
                raise ValidationError("Items validation failed")

            batches = partition(item_list, config.batch_size)
            self.events.emit(
                BatchEvent.BATCH_START,
                BatchStarted(kind=kind, item_count=len(item_list), batch_count=len(batches)),
            )
            logger.info(
                "batch_started",
                kind=kind,
                items=len(item_list),
                batches=len(batches),
                batch_size=config.batch_size,
                max_concurrent=config.max_concurrent,
            )

            tracker = ProgressTracker(total=len(item_list))
            batch_results = await self._run_batches(kind, handler, batches, config, tracker)

            results = [result for batch in batch_results for result in batch]
            duration_ms = (time.perf_counter() - started) * 1000.0
            summary = BatchSummary.from_results(results, kind=kind, duration_ms=duration_ms)
            summary.metadata.update(
                {
                    "batch_count": len(batches),
                    "batch_size": config.batch_size,
                    "max_concurrent": config.max_concurrent,
                }
            )

            self.record_metrics(
                config,
                OperationMetrics(
                    operation=f"batch_{kind}",
                    duration_ms=duration_ms,
                    success=summary.failed == 0,
                    details={
                        "total_items": len(item_list),
                        "batch_count": len(batches),
                        "success_count": summary.succeeded,
                        "failure_count": summary.failed,
                    },
                ),
            )
            logger.info(
                "batch_completed",
                kind=kind,
                operations=summary.operations,
                succeeded=summary.succeeded,
                failed=summary.failed,
                duration_ms=round(duration_ms, 2),
            )
            self.events.emit(BatchEvent.BATCH_COMPLETE, BatchCompleted(kind=kind, summary=summary))
            return summary

        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000.0
            logger.error(
                "batch_operation_failed",
                kind=kind,
                error=str(e),
                error_type=type(e).__name__,
            )
            self.emit_failure(kind, e)
            self.record_metrics(
                config,
                OperationMetrics(
                    operation=f"batch_{kind}",
                    duration_ms=duration_ms,
                    success=False,
                    details={"total_items": len(item_list), "error": str(e)},
                ),
            )
            return BatchSummary.failure(item_list, e, kind=kind, duration_ms=duration_ms)

    async def _run_batches(
        self,
        kind: str,
        handler: OperationHandler,
        batches: List[List[Any]],
        config: BatchConfig,
        tracker: ProgressTracker,
    ) -> List[List[ItemResult]]:
        semaphore = asyncio.Semaphore(config.max_concurrent)
        # Slot i is written only by the task running batch i.
        results: List[List[ItemResult]] = [[] for _ in batches]

        async def run(index: int) -> None:
            async with semaphore:
                results[index] = await self._run_batch(
                    kind, handler, index, batches[index], config, tracker
                )

        await asyncio.gather(*(run(i) for i in range(len(batches))))
        return results

    async def _run_batch(
        self,
        kind: str,
        handler: OperationHandler,
        index: int,
        batch: List[Any],
        config: BatchConfig,
        tracker: ProgressTracker,
    ) -> List[ItemResult]:
        self.events.emit(
            BatchEvent.OPERATION_START,
            OperationStarted(kind=kind, batch_index=index, item_count=len(batch)),
        )
        attempts = 0

        async def attempt() -> List[ItemResult]:
            nonlocal attempts
            attempts += 1
            output = list(await handler.execute(batch))
            if len(output) != len(batch):
                raise BatchError(
                    f"Handler returned {len(output)} results for {len(batch)} items",
                    batch_index=index,
                )
            return output

        try:
            batch_results = await execute_with_retry(
                attempt,
                config.retry_attempts,
                config.retry_delay_ms,
                sleep=self._sleep,
                context={"kind": kind, "batch_index": index},
            )
        except Exception as e:
            error = BatchError(
                str(e) or type(e).__name__, batch_index=index, attempts=attempts
            )
            error.__cause__ = e
            logger.error(
                "batch_failed",
                kind=kind,
                batch_index=index,
                attempts=attempts,
                error=str(error),
            )
            failed = [ItemResult.failure(item, error) for item in batch]
            tracker.record(failed, batch_index=index)
            self.events.emit(
                BatchEvent.OPERATION_ERROR,
                OperationFailed(
                    kind=kind, batch_index=index, error=str(error), attempts=attempts
                ),
            )
            return failed

        tracker.record(batch_results, batch_index=index)
        self.events.emit(
            BatchEvent.OPERATION_COMPLETE,
            OperationCompleted(
                kind=kind,
                batch_index=index,
                results=batch_results,
                progress=tracker.to_dict(),
            ),
        )
        return batch_results

    def reject(self, kind: str, items: Any, error: ValidationError) -> BatchSummary:
        """Report items that could not be read as one failed result."""
        logger.warning("batch_items_rejected", kind=kind, error=str(error))
        self.emit_failure(kind, error)
        self.record_metrics(
            self.config,
            OperationMetrics(
                operation=f"batch_{kind}", duration_ms=0.0, success=False, details={"error": str(error)}
            ),
        )
        return BatchSummary.failure([items], error, kind=kind)

    def emit_failure(self, kind: str, error: BaseException) -> None:
        """Announce a whole-call failure on the event bus."""
        self.events.emit(
            BatchEvent.BATCH_ERROR,
            BatchFailed(kind=kind, error=str(error), error_type=type(error).__name__),
        )

    def record_metrics(self, config: BatchConfig, metrics: OperationMetrics) -> None:
        """Send one record to the metrics sink; sink failures are only logged."""
        if self.metrics is None or not config.record_metrics:
            return
        try:
            self.metrics.record_operation_metrics(metrics)
        except Exception as e:
            logger.warning(
                "metrics_record_failed", operation=metrics.operation, error=str(e)
            )

