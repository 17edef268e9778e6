"""Adaptive batch sizing from a measured sample."""
from __future__ import annotations

import math
import time
from typing import Any, Callable, Iterable, List

import structlog

from ..core.errors import BatchError, ValidationError
from .models import BatchSummary, SizingPlan
from .scheduler import BatchScheduler, collect_items

logger = structlog.get_logger(__name__)


class AdaptiveSizer:
    """Derive batch size and concurrency by timing a small prefix sample.

    The batch size aims for ``target_batch_ms`` per batch; concurrency aims
    to finish the whole job in about ``target_total_ms``. Sample items are
    executed twice (once while profiling, once in the full run).
    """

    def __init__(
        self,
        scheduler: BatchScheduler,
        *,
        clock: Callable[[], float] = time.perf_counter,
        sample_size: int = 5,
        small_job_threshold: int = 10,
        target_batch_ms: float = 500.0,
        target_total_ms: float = 5000.0,
        min_batch_size: int = 5,
        max_batch_size: int = 100,
    ):
        self.scheduler = scheduler
        self.clock = clock
        self.sample_size = sample_size
        self.small_job_threshold = small_job_threshold
        self.target_batch_ms = target_batch_ms
        self.target_total_ms = target_total_ms
        self.min_batch_size = min_batch_size
        self.max_batch_size = max_batch_size

    def plan(
        self,
        cost_per_item_ms: float,
        total_items: int,
        max_concurrent: int,
        sample_size: int = 0,
    ) -> SizingPlan:
        """Pure sizing rule for a measured per-item cost."""
        if cost_per_item_ms <= 0:
            batch_size = self.max_batch_size
        else:
            batch_size = round(self.target_batch_ms / cost_per_item_ms)
        batch_size = max(self.min_batch_size, min(self.max_batch_size, batch_size))

        concurrency = math.ceil(cost_per_item_ms * total_items / self.target_total_ms)
        concurrency = max(1, min(max_concurrent, concurrency))

        return SizingPlan(
            batch_size=batch_size,
            max_concurrent=concurrency,
            cost_per_item_ms=cost_per_item_ms,
            sample_size=sample_size,
        )

    async def profile(self, kind: str, items: List[Any], **options: Any) -> SizingPlan:
        sample = items[: min(self.sample_size, len(items))]
        start = self.clock()
        sample_summary = await self.scheduler.execute(
            kind,
            sample,
            **{**options, "batch_size": len(sample), "max_concurrent": 1},
        )
        elapsed_ms = (self.clock() - start) * 1000.0

        if not sample_summary.success:
            raise BatchError(f"Profiling sample failed: {sample_summary.error}")

        max_concurrent = self.scheduler.config.merge(options).max_concurrent
        return self.plan(
            elapsed_ms / len(sample),
            len(items),
            max_concurrent,
            sample_size=len(sample),
        )

    async def execute_with_optimal_size(
        self, items: Iterable[Any], kind: str = "update", **options: Any
    ) -> BatchSummary:
        """Run ``kind`` over ``items`` with a measured batch size and concurrency.

        Small jobs skip profiling. Any profiling failure falls back to the
        caller's (or default) parameters.
        """
        try:
            item_list = collect_items(items)
        except ValidationError as e:
            return self.scheduler.reject(kind, items, e)

        if len(item_list) < self.small_job_threshold:
            return await self.scheduler.execute(kind, item_list, **options)

        try:
            plan = await self.profile(kind, item_list, **options)
        except Exception as e:
            logger.warning("adaptive_sizing_fallback", kind=kind, error=str(e))
            return await self.scheduler.execute(kind, item_list, **options)

        logger.debug("adaptive_sizing_plan", kind=kind, **plan.to_dict())
        summary = await self.scheduler.execute(
            kind,
            item_list,
            **{
                **options,
                "batch_size": plan.batch_size,
                "max_concurrent": plan.max_concurrent,
            },
        )
        summary.metadata["sizing"] = plan.to_dict()
        return summary
