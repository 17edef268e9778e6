"""Batch operation engine for taskcraft.

Runs create/update/delete/custom operations over large item collections:
- Partitioning into fixed-size batches
- Bounded concurrency across batches
- Batch-granular retry with exponential backoff and jitter
- Mixed-kind batches and adaptive batch sizing
"""

from __future__ import annotations

from .adaptive import AdaptiveSizer
from .engine import BatchOperations
from .events import BatchEvent, EventBus
from .handlers import CreateHandler, CustomHandler, DeleteHandler, OperationHandler, UpdateHandler
from .mixed import MixedBatchProcessor
from .models import (
    BatchSummary,
    CreatePayload,
    CustomPayload,
    DeleteRef,
    ItemResult,
    OperationDescriptor,
    SizingPlan,
    UpdateRef,
)
from .progress import ProgressTracker
from .registry import OperationRegistry, default_registry
from .retry import execute_with_retry
from .scheduler import BatchScheduler, partition

__all__ = [
    "BatchOperations",
    "BatchScheduler",
    "MixedBatchProcessor",
    "AdaptiveSizer",
    "OperationRegistry",
    "default_registry",
    "OperationHandler",
    "CreateHandler",
    "UpdateHandler",
    "DeleteHandler",
    "CustomHandler",
    "EventBus",
    "BatchEvent",
    "BatchSummary",
    "ItemResult",
    "CreatePayload",
    "UpdateRef",
    "DeleteRef",
    "CustomPayload",
    "OperationDescriptor",
    "SizingPlan",
    "ProgressTracker",
    "execute_with_retry",
    "partition",
]
