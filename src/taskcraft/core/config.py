from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ConfigError

_TRUTHY = {"1", "true", "yes", "on"}

# Environment variable -> config field
ENV_VARS = {
    "ENABLE_BATCH_OPERATIONS": "enabled",
    "BATCH_MAX_CONCURRENT": "max_concurrent",
    "BATCH_SIZE": "batch_size",
    "BATCH_RETRY_ATTEMPTS": "retry_attempts",
    "BATCH_RETRY_DELAY": "retry_delay_ms",
    "BATCH_PRIORITY_BASED": "priority_based",
    "BATCH_ADAPTIVE_CONCURRENCY": "adaptive_concurrency",
}


@dataclass(frozen=True)
class BatchConfig:
    enabled: bool = True
    max_concurrent: int = 5
    batch_size: int = 50
    retry_attempts: int = 3
    retry_delay_ms: float = 1000
    # Reserved: carried through but not acted on.
    priority_based: bool = False
    adaptive_concurrency: bool = False
    record_metrics: bool = True

    def __post_init__(self) -> None:
        for name in ("max_concurrent", "batch_size", "retry_attempts"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if self.retry_delay_ms < 0:
            raise ConfigError(
                f"retry_delay_ms must be >= 0, got {self.retry_delay_ms!r}"
            )

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> BatchConfig:
        """Build a config from ``BATCH_*`` environment variables.

        Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        defaults = cls()

        for var, name in ENV_VARS.items():
            raw = env.get(var)
            if raw is None or raw == "":
                continue
            default = getattr(defaults, name)
            if isinstance(default, bool):
                values[name] = raw.strip().lower() in _TRUTHY
            elif isinstance(default, int):
                try:
                    values[name] = int(raw)
                except ValueError as e:
                    raise ConfigError(f"{var} must be an integer, got {raw!r}") from e
            else:
                try:
                    values[name] = float(raw)
                except ValueError as e:
                    raise ConfigError(f"{var} must be a number, got {raw!r}") from e

        return cls(**values)

    @classmethod
    def split(
        cls, options: Mapping[str, Any]
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Separate config overrides from handler options."""
        names = set(cls.field_names())
        overrides = {k: v for k, v in options.items() if k in names}
        handler_options = {k: v for k, v in options.items() if k not in names}
        return overrides, handler_options

    def merge(self, overrides: Optional[Mapping[str, Any]] = None) -> BatchConfig:
        """Return a copy with the config keys of ``overrides`` applied."""
        if not overrides:
            return self
        applicable, _ = self.split(overrides)
        return replace(self, **applicable)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
