"""Core modules for taskcraft: configuration, errors, logging, metrics."""

from .config import BatchConfig
from .errors import (
    BatchError,
    ConfigError,
    HandlerError,
    TaskcraftError,
    UnknownOperationType,
    ValidationError,
)
from .metrics import MetricsCollector, OperationMetrics

__all__ = [
    "BatchConfig",
    "TaskcraftError",
    "ConfigError",
    "ValidationError",
    "UnknownOperationType",
    "HandlerError",
    "BatchError",
    "MetricsCollector",
    "OperationMetrics",
]
