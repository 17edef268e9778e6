"""Operation handlers: turn a batch of items into per-item results.

Items inside one handler invocation are processed sequentially; parallelism
happens one level up, across batches. A failing item never aborts its batch:
its exception is captured into that item's ``ItemResult``.
"""
from __future__ import annotations

import inspect
from collections.abc import Sequence
from typing import Any, Callable, List, Optional, Protocol, runtime_checkable

import structlog

from ..core.errors import ConfigError, HandlerError
from .models import CreatePayload, CustomPayload, DeleteRef, ItemResult, UpdateRef

ItemValidator = Callable[[Any], Any]
Processor = Callable[[Any], Any]

logger = structlog.get_logger(__name__)


@runtime_checkable
class OperationHandler(Protocol):
    """Capability shared by every operation kind."""

    def validate(self, items: Sequence[Any]) -> bool: ...

    async def execute(self, items: Sequence[Any]) -> List[ItemResult]: ...


class Repository(Protocol):
    """Storage collaborator used by the create/update/delete handlers."""

    def create(self, item: Any) -> Any: ...

    def update(self, id: Any, item: Any) -> Any: ...

    def delete(self, id: Any) -> Any: ...


async def _call(fn: Callable[..., Any], *args: Any, item: Any = None) -> Any:
    """Invoke a sync or async collaborator, wrapping failures in HandlerError."""
    try:
        result = fn(*args)
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        raise HandlerError(str(e) or type(e).__name__, item=item) from e
    return result


def validate_items(items: Sequence[Any]) -> bool:
    """Default batch validation: a non-empty sequence."""
    return isinstance(items, Sequence) and not isinstance(items, (str, bytes)) and len(items) > 0


def _check_item(validate_item: Optional[ItemValidator], item: Any) -> Optional[str]:
    """Run the optional per-item validator; returns an error message or None."""
    if validate_item is None:
        return None
    outcome = validate_item(item)
    if outcome is True:
        return None
    if isinstance(outcome, str) and outcome:
        return outcome
    return "Validation failed"


def _note_ignored(handler: str, extra: dict) -> None:
    # mixed batches hand every kind the same option set
    if extra:
        logger.debug("handler_options_ignored", handler=handler, options=sorted(extra))


def _require_method(repository: Any, method: str) -> None:
    if repository is None or not callable(getattr(repository, method, None)):
        raise ConfigError(f"Repository with {method}() method is required")


class CreateHandler:
    """Create one record per item through ``repository.create``."""

    def __init__(
        self,
        repository: Optional[Repository] = None,
        validate_item: Optional[ItemValidator] = None,
        **extra: Any,
    ):
        _require_method(repository, "create")
        _note_ignored("create", extra)
        self.repository = repository
        self.validate_item = validate_item

    def validate(self, items: Sequence[Any]) -> bool:
        return validate_items(items)

    async def execute(self, items: Sequence[Any]) -> List[ItemResult]:
        results: List[ItemResult] = []
        for item in items:
            record = item.record if isinstance(item, CreatePayload) else item
            try:
                error = _check_item(self.validate_item, record)
                if error:
                    results.append(ItemResult.failure(item, error))
                    continue
                created = await _call(self.repository.create, record, item=item)
                results.append(ItemResult.ok(item, created))
            except Exception as e:
                results.append(ItemResult.failure(item, e))
        return results


class UpdateHandler:
    """Update records through ``repository.update(id, item)``.

    Items must carry an identifier (``id_field``, default ``"id"``) or be
    ``UpdateRef`` values; an item without one fails on its own.
    """

    def __init__(
        self,
        repository: Optional[Repository] = None,
        validate_item: Optional[ItemValidator] = None,
        id_field: str = "id",
        **extra: Any,
    ):
        _require_method(repository, "update")
        _note_ignored("update", extra)
        self.repository = repository
        self.validate_item = validate_item
        self.id_field = id_field

    def validate(self, items: Sequence[Any]) -> bool:
        return validate_items(items)

    async def execute(self, items: Sequence[Any]) -> List[ItemResult]:
        results: List[ItemResult] = []
        for item in items:
            try:
                ref = UpdateRef.from_item(item, self.id_field)
                if ref is None:
                    results.append(
                        ItemResult.failure(item, f"Item is missing {self.id_field} field")
                    )
                    continue
                error = _check_item(self.validate_item, ref.patch)
                if error:
                    results.append(ItemResult.failure(item, error))
                    continue
                updated = await _call(self.repository.update, ref.id, ref.patch, item=item)
                results.append(ItemResult.ok(item, updated, item_id=ref.id))
            except Exception as e:
                results.append(ItemResult.failure(item, e))
        return results


class DeleteHandler:
    """Delete by identifier; accepts raw ids, id-bearing records or ``DeleteRef``."""

    def __init__(
        self,
        repository: Optional[Repository] = None,
        id_field: str = "id",
        **extra: Any,
    ):
        _require_method(repository, "delete")
        _note_ignored("delete", extra)
        self.repository = repository
        self.id_field = id_field

    def validate(self, items: Sequence[Any]) -> bool:
        return validate_items(items)

    async def execute(self, items: Sequence[Any]) -> List[ItemResult]:
        results: List[ItemResult] = []
        for item in items:
            try:
                ref = DeleteRef.from_item(item, self.id_field)
                if ref is None:
                    results.append(
                        ItemResult.failure(item, f"Item is missing {self.id_field} field")
                    )
                    continue
                deleted = await _call(self.repository.delete, ref.id, item=item)
                results.append(ItemResult.ok(item, deleted, item_id=ref.id))
            except Exception as e:
                results.append(ItemResult.failure(item, e))
        return results


class CustomHandler:
    """Apply a caller-supplied ``processor(item)`` to every item."""

    def __init__(self, processor: Optional[Processor] = None, **extra: Any):
        if processor is None or not callable(processor):
            raise ConfigError("Processor function is required")
        _note_ignored("custom", extra)
        self.processor = processor

    def validate(self, items: Sequence[Any]) -> bool:
        return validate_items(items)

    async def execute(self, items: Sequence[Any]) -> List[ItemResult]:
        results: List[ItemResult] = []
        for item in items:
            value = item.value if isinstance(item, CustomPayload) else item
            try:
                output = await _call(self.processor, value, item=item)
                results.append(ItemResult.ok(item, output))
            except Exception as e:
                results.append(ItemResult.failure(item, e))
        return results
