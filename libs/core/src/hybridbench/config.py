from __future__ import annotations
import math
import os
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Tuple

from .errors import ConfigError
from .runner import DEFAULT_MESSAGES

"""Environment-driven settings for the benchmark host process.

Every field has a ``HYBRIDBENCH_*`` override; CLI options are applied on top
with ``BenchmarkConfig.with_overrides``.
"""

ENV_PREFIX = "HYBRIDBENCH_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(ENV_PREFIX + name)
    if value is None:
        return None
    return value.strip()


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = _env(environ, name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = _env(environ, name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


def _bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _env(environ, name)
    if raw is None:
        return default
    low = raw.lower()
    if low in _TRUE:
        return True
    if low in _FALSE:
        return False
    raise ConfigError(f"{ENV_PREFIX}{name} must be a boolean flag, got {raw!r}")


@dataclass(frozen=True)
class BenchmarkConfig:
    rsa_url: str = "http://rsa-server:8080/public-key"
    mlkem_url: str = "http://ml-kem-server:8081/public-key"
    interval: float = 1.0
    http_timeout: float = 5.0
    startup_delay: float = 3.0
    metrics_port: int = 8082
    bind_kem_secret: bool = False
    parallel_fetch: bool = False
    local_keys: bool = False
    log_level: str = "INFO"
    messages: Tuple[str, ...] = field(default=DEFAULT_MESSAGES)

    def __post_init__(self) -> None:
        for name in ("interval", "http_timeout"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ConfigError(f"{name} must be a finite positive number, got {value!r}")
        if not math.isfinite(self.startup_delay) or self.startup_delay < 0:
            raise ConfigError(f"startup_delay must be >= 0, got {self.startup_delay!r}")
        if not 0 <= self.metrics_port <= 65535:
            raise ConfigError(f"metrics_port out of range: {self.metrics_port}")
        if not self.messages:
            raise ConfigError("messages must not be empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BenchmarkConfig":
        env = os.environ if environ is None else environ
        d = cls.__dataclass_fields__
        return cls(
            rsa_url=_env(env, "RSA_URL") or d["rsa_url"].default,
            mlkem_url=_env(env, "MLKEM_URL") or d["mlkem_url"].default,
            interval=_float(env, "INTERVAL", d["interval"].default),
            http_timeout=_float(env, "HTTP_TIMEOUT", d["http_timeout"].default),
            startup_delay=_float(env, "STARTUP_DELAY", d["startup_delay"].default),
            metrics_port=_int(env, "METRICS_PORT", d["metrics_port"].default),
            bind_kem_secret=_bool(env, "BIND_KEM_SECRET", d["bind_kem_secret"].default),
            parallel_fetch=_bool(env, "PARALLEL_FETCH", d["parallel_fetch"].default),
            local_keys=_bool(env, "LOCAL_KEYS", d["local_keys"].default),
            log_level=(_env(env, "LOG_LEVEL") or d["log_level"].default).upper(),
        )

    def with_overrides(self, **overrides: Any) -> "BenchmarkConfig":
        """Apply non-``None`` overrides (unset CLI options pass ``None``)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
