"""Result, summary and payload types for batch operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import AliasChoices, BaseModel, Field, field_validator


@dataclass
class ItemResult:
    """Outcome of one input item. Produced exactly once per item."""

    success: bool
    item: Any
    result: Any = None
    error: Optional[str] = None
    item_id: Any = None

    @classmethod
    def ok(cls, item: Any, result: Any = None, item_id: Any = None) -> ItemResult:
        return cls(success=True, item=item, result=result, item_id=item_id)

    @classmethod
    def failure(cls, item: Any, error: str | BaseException) -> ItemResult:
        if isinstance(error, BaseException):
            message = str(error) or type(error).__name__
        else:
            message = error or "Unknown error"
        return cls(success=False, item=item, error=message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "item": self.item}
        if self.success:
            data["result"] = self.result
        else:
            data["error"] = self.error
        if self.item_id is not None:
            data["item_id"] = self.item_id
        return data


@dataclass
class BatchSummary:
    """Aggregate over one ``execute`` or ``batch_process`` call."""

    success: bool
    kind: Optional[str] = None
    operations: int = 0
    succeeded: int = 0
    failed: int = 0
    success_rate: float = 100.0
    duration_ms: float = 0.0
    items_per_second: Optional[float] = None
    results: List[ItemResult] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    message: Optional[str] = None
    kind_results: Dict[str, BatchSummary] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def operations_per_second(self) -> Optional[float]:
        return self.items_per_second

    @classmethod
    def from_results(
        cls,
        results: List[ItemResult],
        *,
        kind: Optional[str] = None,
        duration_ms: float = 0.0,
    ) -> BatchSummary:
        total = len(results)
        succeeded = sum(1 for r in results if r.success)
        return cls(
            success=True,
            kind=kind,
            operations=total,
            succeeded=succeeded,
            failed=total - succeeded,
            success_rate=(succeeded / total * 100.0) if total else 100.0,
            duration_ms=duration_ms,
            items_per_second=(total / duration_ms * 1000.0) if duration_ms > 0 else None,
            results=results,
        )

    @classmethod
    def empty(cls, *, kind: Optional[str] = None, message: str) -> BatchSummary:
        return cls(success=True, kind=kind, message=message)

    @classmethod
    def failure(
        cls,
        items: Sequence[Any],
        error: BaseException,
        *,
        kind: Optional[str] = None,
        duration_ms: float = 0.0,
    ) -> BatchSummary:
        """Summary for a call that failed as a whole.

        Every input item is reported as failed so counts stay consistent.
        """
        results = [ItemResult.failure(item, error) for item in items]
        return cls(
            success=False,
            kind=kind,
            operations=len(results),
            succeeded=0,
            failed=len(results),
            success_rate=0.0 if results else 100.0,
            duration_ms=duration_ms,
            results=results,
            error=str(error),
            error_type=type(error).__name__,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "kind": self.kind,
            "operations": self.operations,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "success_rate": round(self.success_rate, 2),
            "duration_ms": round(self.duration_ms, 3),
            "items_per_second": (
                round(self.items_per_second, 2)
                if self.items_per_second is not None
                else None
            ),
            "results": [r.to_dict() for r in self.results],
        }
        if self.error is not None:
            data["error"] = self.error
            data["error_type"] = self.error_type
        if self.message is not None:
            data["message"] = self.message
        if self.kind_results:
            data["kind_results"] = {
                k: v.to_dict() for k, v in self.kind_results.items()
            }
        if self.metadata:
            data["metadata"] = self.metadata
        return data


# Per-kind payloads. Raw items are normalized into these at the handler seam.


@dataclass(frozen=True)
class CreatePayload:
    record: Any


@dataclass(frozen=True)
class UpdateRef:
    id: Any
    patch: Any

    @classmethod
    def from_item(cls, item: Any, id_field: str = "id") -> Optional[UpdateRef]:
        """Normalize an update item; ``None`` when it carries no identifier."""
        if isinstance(item, UpdateRef):
            return item if _has_id(item.id) else None
        if isinstance(item, Mapping):
            ident = item.get(id_field)
        else:
            ident = getattr(item, id_field, None)
        if not _has_id(ident):
            return None
        return cls(id=ident, patch=item)


@dataclass(frozen=True)
class DeleteRef:
    id: Any

    @classmethod
    def from_item(cls, item: Any, id_field: str = "id") -> Optional[DeleteRef]:
        """Accept a raw identifier, a record carrying one, or a ``DeleteRef``."""
        if isinstance(item, DeleteRef):
            ident = item.id
        elif isinstance(item, Mapping):
            ident = item.get(id_field)
        elif hasattr(item, id_field):
            ident = getattr(item, id_field)
        else:
            ident = item
        if not _has_id(ident):
            return None
        return cls(id=ident)


@dataclass(frozen=True)
class CustomPayload:
    value: Any


def _has_id(value: Any) -> bool:
    return value is not None and value != ""


class OperationDescriptor(BaseModel):
    """One entry of a mixed batch: an operation kind plus its item."""

    kind: str = Field(validation_alias=AliasChoices("kind", "type"), min_length=1)
    data: Any

    @field_validator("data")
    @classmethod
    def _data_present(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("data is required")
        return value


@dataclass(frozen=True)
class SizingPlan:
    """Batch size and concurrency derived from a measured sample."""

    batch_size: int
    max_concurrent: int
    cost_per_item_ms: float
    sample_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_size": self.batch_size,
            "max_concurrent": self.max_concurrent,
            "cost_per_item_ms": round(self.cost_per_item_ms, 3),
            "sample_size": self.sample_size,
        }
