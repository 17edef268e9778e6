"""Exception hierarchy for the batch engine."""

from __future__ import annotations

from typing import Any, Optional


class TaskcraftError(Exception):
    """Base exception for all taskcraft errors."""

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigError(TaskcraftError):
    """Invalid configuration or registry misuse."""


class ValidationError(TaskcraftError):
    """A malformed call: empty/invalid items or a bad mixed-batch descriptor.

    Never retried.
    """


class UnknownOperationType(TaskcraftError):
    """No handler is registered for the requested operation kind."""

    def __init__(self, kind: str, *, hint: Optional[str] = None) -> None:
        super().__init__(f"Unknown operation type: {kind}", hint=hint)
        self.kind = kind


class HandlerError(TaskcraftError):
    """A repository or processor call failed for a single item."""

    def __init__(self, message: str, *, item: Any = None) -> None:
        super().__init__(message)
        self.item = item


class BatchError(TaskcraftError):
    """A whole batch failed after exhausting its retry attempts.

    The last underlying exception is chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        batch_index: Optional[int] = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message)
        self.batch_index = batch_index
        self.attempts = attempts
