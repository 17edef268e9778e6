"""Tests for BatchConfig."""

import pytest

from taskcraft.core.config import BatchConfig
from taskcraft.core.errors import ConfigError


def test_default_config():
    """Test default BatchConfig values."""
    cfg = BatchConfig()
    assert cfg.enabled
    assert cfg.max_concurrent == 5
    assert cfg.batch_size == 50
    assert cfg.retry_attempts == 3
    assert cfg.retry_delay_ms == 1000
    assert not cfg.priority_based
    assert not cfg.adaptive_concurrency


def test_merge_applies_only_config_keys():
    cfg = BatchConfig()
    merged = cfg.merge({"batch_size": 2, "max_concurrent": 2, "repository": object()})
    assert merged.batch_size == 2
    assert merged.max_concurrent == 2
    assert merged.retry_attempts == cfg.retry_attempts
    # base config untouched
    assert cfg.batch_size == 50


def test_split_separates_handler_options():
    overrides, handler_options = BatchConfig.split(
        {"batch_size": 10, "id_field": "task_id", "processor": print}
    )
    assert overrides == {"batch_size": 10}
    assert set(handler_options) == {"id_field", "processor"}


@pytest.mark.parametrize(
    "field,value",
    [("batch_size", 0), ("max_concurrent", -1), ("retry_attempts", 0), ("retry_delay_ms", -5)],
)
def test_invalid_values_rejected(field, value):
    with pytest.raises(ConfigError):
        BatchConfig(**{field: value})


def test_from_env():
    """Test reading configuration from BATCH_* variables."""
    cfg = BatchConfig.from_env(
        {
            "ENABLE_BATCH_OPERATIONS": "false",
            "BATCH_MAX_CONCURRENT": "8",
            "BATCH_SIZE": "25",
            "BATCH_RETRY_ATTEMPTS": "2",
            "BATCH_RETRY_DELAY": "250",
            "BATCH_PRIORITY_BASED": "yes",
        }
    )
    assert not cfg.enabled
    assert cfg.max_concurrent == 8
    assert cfg.batch_size == 25
    assert cfg.retry_attempts == 2
    assert cfg.retry_delay_ms == 250
    assert cfg.priority_based
    assert not cfg.adaptive_concurrency


def test_from_env_empty_uses_defaults():
    assert BatchConfig.from_env({}) == BatchConfig()


def test_from_env_rejects_garbage():
    with pytest.raises(ConfigError):
        BatchConfig.from_env({"BATCH_SIZE": "lots"})
