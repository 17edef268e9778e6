"""Operation-kind registry mapping names to handler constructors."""

from __future__ import annotations

from typing import Callable, Dict, List

import structlog

from ..core.errors import ConfigError, UnknownOperationType
from .handlers import (
    CreateHandler,
    CustomHandler,
    DeleteHandler,
    OperationHandler,
    UpdateHandler,
)

logger = structlog.get_logger(__name__)

HandlerFactory = Callable[..., OperationHandler]

STANDARD_HANDLERS: Dict[str, HandlerFactory] = {
    "create": CreateHandler,
    "update": UpdateHandler,
    "delete": DeleteHandler,
    "custom": CustomHandler,
}


class OperationRegistry:
    """Explicit registry of operation kinds.

    Each engine owns (or is handed) its own registry instead of sharing a
    process-wide map, so tests and engine instances stay isolated.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, HandlerFactory] = {}

    def register(self, kind: str, factory: HandlerFactory) -> None:
        """Register a handler constructor. Re-registration overwrites."""
        if not kind or not isinstance(kind, str):
            raise ConfigError("Operation kind must be a non-empty string")
        if factory is None or not callable(factory):
            raise ConfigError(f"Handler constructor is required for kind: {kind}")

        if kind in self._handlers:
            logger.debug("operation_handler_replaced", kind=kind)
        self._handlers[kind] = factory
        logger.debug(
            "operation_handler_registered",
            kind=kind,
            handler=getattr(factory, "__name__", repr(factory)),
        )

    def get_handler(self, kind: str) -> HandlerFactory:
        try:
            return self._handlers[kind]
        except KeyError:
            raise UnknownOperationType(
                kind, hint=f"Registered kinds: {', '.join(self.list_kinds()) or 'none'}"
            ) from None

    def has_handler(self, kind: str) -> bool:
        return kind in self._handlers

    def list_kinds(self) -> List[str]:
        return list(self._handlers)

    def __contains__(self, kind: object) -> bool:
        return kind in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)


def register_standard_handlers(registry: OperationRegistry) -> OperationRegistry:
    """Register the create/update/delete/custom kinds on ``registry``."""
    for kind, factory in STANDARD_HANDLERS.items():
        registry.register(kind, factory)
    return registry


def default_registry() -> OperationRegistry:
    """A fresh registry with the standard kinds registered."""
    return register_standard_handlers(OperationRegistry())
