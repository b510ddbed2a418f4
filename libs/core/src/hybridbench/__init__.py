
from .interfaces import KeyWrapScheme
from .registry import registry
from .errors import (
    BenchmarkError,
    TransportError,
    DecodeError,
    KeyParseError,
    PayloadTooLarge,
    WrapError,
    RandomSourceExhausted,
    CipherInitError,
    ConfigError,
)
from .models import PublicKeyMaterial, TimingSample, WrapResult, EncryptedEnvelope, TickResult
from .metrics import RunningStatistics, MetricsSnapshot, MetricsAggregator, PrometheusSink
from .symmetric import SymmetricEncryptor
from .fetcher import HttpPublicKeyFetcher, LocalKeySource
from .runner import BenchmarkRunner, TickPhase, DEFAULT_MESSAGES
from .scheduler import TickScheduler
from .config import BenchmarkConfig

__all__ = [
    "KeyWrapScheme",
    "registry",
    "BenchmarkError",
    "TransportError",
    "DecodeError",
    "KeyParseError",
    "PayloadTooLarge",
    "WrapError",
    "RandomSourceExhausted",
    "CipherInitError",
    "ConfigError",
    "PublicKeyMaterial",
    "TimingSample",
    "WrapResult",
    "EncryptedEnvelope",
    "TickResult",
    "RunningStatistics",
    "MetricsSnapshot",
    "MetricsAggregator",
    "PrometheusSink",
    "SymmetricEncryptor",
    "HttpPublicKeyFetcher",
    "LocalKeySource",
    "BenchmarkRunner",
    "TickPhase",
    "DEFAULT_MESSAGES",
    "TickScheduler",
    "BenchmarkConfig",
]
