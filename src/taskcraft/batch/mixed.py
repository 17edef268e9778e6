"""Mixed batches: heterogeneous operation descriptors grouped by kind."""
from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pydantic
import structlog

from ..core.errors import ValidationError
from ..core.metrics import OperationMetrics
from .models import BatchSummary, ItemResult, OperationDescriptor
from .scheduler import BatchScheduler, collect_items

logger = structlog.get_logger(__name__)

MIXED_KIND = "mixed"


def parse_descriptors(operations: Iterable[Any]) -> List[OperationDescriptor]:
    """Validate ``{kind, data}`` descriptors. ``type`` is accepted for ``kind``."""
    descriptors: List[OperationDescriptor] = []
    for position, op in enumerate(operations):
        if isinstance(op, OperationDescriptor):
            descriptors.append(op)
            continue
        try:
            descriptors.append(OperationDescriptor.model_validate(op))
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"Each operation must have a kind and data (operation {position})",
                hint=str(e),
            ) from e
    return descriptors


def group_by_kind(descriptors: Iterable[OperationDescriptor]) -> Dict[str, List[Any]]:
    """Group descriptor data by kind, kinds in order of first appearance."""
    groups: Dict[str, List[Any]] = {}
    for descriptor in descriptors:
        groups.setdefault(descriptor.kind, []).append(descriptor.data)
    return groups


class MixedBatchProcessor:
    """Run one scheduler call per kind, all kinds concurrently, then merge."""

    def __init__(self, scheduler: BatchScheduler):
        self.scheduler = scheduler

    async def batch_process(
        self,
        operations: Optional[Iterable[Any]],
        kind_options: Optional[Mapping[str, Mapping[str, Any]]] = None,
        **options: Any,
    ) -> BatchSummary:
        """Process a heterogeneous list of ``{kind, data}`` descriptors.

        Args:
            operations: Descriptors (mappings or ``OperationDescriptor``)
            kind_options: Per-kind option overrides, merged over ``options``
            **options: Options shared by every kind

        Returns:
            Merged summary; per-kind summaries are in ``kind_results``
        """
        if not self.scheduler.config.enabled:
            return BatchSummary.empty(kind=MIXED_KIND, message="Batch operations are disabled")

        try:
            op_list = collect_items(operations)
        except ValidationError as e:
            return self._failed([operations], e, 0.0)

        if not op_list:
            return BatchSummary.empty(kind=MIXED_KIND, message="No operations to process")

        started = time.perf_counter()
        try:
            groups = group_by_kind(parse_descriptors(op_list))
            kind_options = kind_options or {}

            kinds = list(groups)
            summaries = await asyncio.gather(
                *(
                    self.scheduler.execute(
                        kind, groups[kind], **{**options, **kind_options.get(kind, {})}
                    )
                    for kind in kinds
                )
            )
        except Exception as e:
            return self._failed(op_list, e, (time.perf_counter() - started) * 1000.0)

        all_results: List[ItemResult] = []
        for summary in summaries:
            all_results.extend(summary.results)

        duration_ms = (time.perf_counter() - started) * 1000.0
        merged = BatchSummary.from_results(all_results, kind=MIXED_KIND, duration_ms=duration_ms)
        merged.kind_results = dict(zip(kinds, summaries))
        merged.metadata["kinds"] = kinds

        failed_kinds = [s for s in summaries if not s.success]
        if failed_kinds:
            merged.success = False
            merged.error = "; ".join(f"{s.kind}: {s.error}" for s in failed_kinds)
            merged.error_type = failed_kinds[0].error_type

        self.scheduler.record_metrics(
            self.scheduler.config,
            OperationMetrics(
                operation="batch_mixed",
                duration_ms=duration_ms,
                success=merged.failed == 0,
                details={
                    "total_operations": merged.operations,
                    "operation_types": kinds,
                    "success_count": merged.succeeded,
                    "failure_count": merged.failed,
                },
            ),
        )
        logger.info(
            "mixed_batch_completed",
            kinds=kinds,
            operations=merged.operations,
            succeeded=merged.succeeded,
            failed=merged.failed,
        )
        return merged

    def _failed(self, op_list: List[Any], error: Exception, duration_ms: float) -> BatchSummary:
        logger.error("batch_process_failed", error=str(error), error_type=type(error).__name__)
        self.scheduler.emit_failure(MIXED_KIND, error)
        self.scheduler.record_metrics(
            self.scheduler.config,
            OperationMetrics(
                operation="batch_mixed",
                duration_ms=duration_ms,
                success=False,
                details={"total_operations": len(op_list), "error": str(error)},
            ),
        )
        return BatchSummary.failure(op_list, error, kind=MIXED_KIND, duration_ms=duration_ms)
