"""Progress tracking for batch operations."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

if TYPE_CHECKING:
    from .models import ItemResult


@dataclass
class ProgressTracker:
    """Tracks item progress across the batches of one ``execute`` call."""

    total: int
    processed: int = 0
    successful: int = 0
    failed: int = 0
    batches_done: int = 0
    started_at: float = field(default_factory=time.perf_counter)
    current_batch: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def percentage(self) -> float:
        """Calculate completion percentage."""
        if self.total == 0:
            return 100.0
        return min(100.0, (self.processed / self.total) * 100.0)

    @property
    def elapsed_seconds(self) -> float:
        return time.perf_counter() - self.started_at

    @property
    def items_per_second(self) -> float:
        """Calculate processing rate."""
        elapsed = self.elapsed_seconds
        if elapsed == 0:
            return 0.0
        return self.processed / elapsed

    @property
    def estimated_remaining_seconds(self) -> float:
        """Estimate remaining time in seconds."""
        if self.processed == 0:
            return 0.0
        rate = self.items_per_second
        if rate == 0:
            return 0.0
        remaining = self.total - self.processed
        return remaining / rate

    def increment(self, success: bool = True) -> None:
        """Count one processed item."""
        self.processed += 1
        if success:
            self.successful += 1
        else:
            self.failed += 1

    def record(self, results: Iterable[ItemResult], batch_index: Optional[int] = None) -> None:
        """Fold a finished batch's results into the counters."""
        for result in results:
            self.increment(success=result.success)
        self.batches_done += 1
        if batch_index is not None:
            self.current_batch = batch_index

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total": self.total,
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "batches_done": self.batches_done,
            "percentage": round(self.percentage, 2),
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "items_per_second": round(self.items_per_second, 2),
            "estimated_remaining_seconds": round(self.estimated_remaining_seconds, 2),
            "current_batch": self.current_batch,
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        return (
            f"Progress({self.processed}/{self.total} = {self.percentage:.1f}%, "
            f"ok={self.successful} failed={self.failed}, "
            f"{self.items_per_second:.1f} items/s)"
        )
