"""Lifecycle events for batch operations and a synchronous event bus."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

import structlog

from ..core.errors import ConfigError

if TYPE_CHECKING:
    from .models import BatchSummary, ItemResult

logger = structlog.get_logger(__name__)


class BatchEvent(str, Enum):
    """Lifecycle event names."""

    OPERATION_START = "operation:start"
    OPERATION_COMPLETE = "operation:complete"
    OPERATION_ERROR = "operation:error"
    BATCH_START = "batch:start"
    BATCH_COMPLETE = "batch:complete"
    BATCH_ERROR = "batch:error"


@dataclass
class OperationStarted:
    kind: str
    batch_index: int
    item_count: int


@dataclass
class OperationCompleted:
    kind: str
    batch_index: int
    results: List["ItemResult"]
    progress: Dict[str, Any] = field(default_factory=dict)


@dataclass
class OperationFailed:
    kind: str
    batch_index: int
    error: str
    attempts: int


@dataclass
class BatchStarted:
    kind: str
    item_count: int
    batch_count: int


@dataclass
class BatchCompleted:
    kind: str
    summary: "BatchSummary"


@dataclass
class BatchFailed:
    kind: str
    error: str
    error_type: Optional[str] = None


EventPayload = Union[
    OperationStarted,
    OperationCompleted,
    OperationFailed,
    BatchStarted,
    BatchCompleted,
    BatchFailed,
]
Listener = Callable[[Any], Any]


def _coerce_event(event: Union[BatchEvent, str]) -> BatchEvent:
    try:
        return BatchEvent(event)
    except ValueError as e:
        known = ", ".join(ev.value for ev in BatchEvent)
        raise ConfigError(f"Unknown event: {event!r}", hint=f"Known events: {known}") from e


class EventBus:
    """Synchronous listener registry.

    Listeners run in registration order. A listener that raises is logged
    and skipped; it never aborts the batch job or the remaining listeners.
    """

    def __init__(self) -> None:
        self._listeners: Dict[BatchEvent, List[Listener]] = defaultdict(list)

    def on(self, event: Union[BatchEvent, str], listener: Listener) -> Listener:
        """Subscribe ``listener`` to ``event``. Returns the listener."""
        if not callable(listener):
            raise ConfigError("Event listener must be callable")
        self._listeners[_coerce_event(event)].append(listener)
        return listener

    def off(self, event: Union[BatchEvent, str], listener: Listener) -> bool:
        """Unsubscribe ``listener``. Returns False if it was not subscribed."""
        listeners = self._listeners.get(_coerce_event(event), [])
        if listener in listeners:
            listeners.remove(listener)
            return True
        return False

    def listener_count(self, event: Union[BatchEvent, str]) -> int:
        return len(self._listeners.get(_coerce_event(event), []))

    def emit(self, event: Union[BatchEvent, str], payload: EventPayload) -> None:
        event = _coerce_event(event)
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(payload)
            except Exception:
                logger.exception(
                    "event_listener_failed",
                    batch_event=event.value,
                    listener=getattr(listener, "__name__", repr(listener)),
                )
