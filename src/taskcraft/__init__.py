"""taskcraft: batch execution engine for task operations."""

from .batch import BatchOperations, BatchSummary, ItemResult
from .core import BatchConfig

__all__ = ["BatchOperations", "BatchSummary", "ItemResult", "BatchConfig"]

__version__ = "0.3.0"
