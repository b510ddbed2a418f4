from __future__ import annotations

"""Error taxonomy for the benchmark loop.

Every ``BenchmarkError`` aborts the current tick only. The runner stamps the
phase it was in before logging, adapters and fetchers fill in the scheme.
"""


class BenchmarkError(Exception):
    def __init__(self, message: str, *, scheme: str | None = None, phase: str | None = None) -> None:
        super().__init__(message)
        self.scheme = scheme
        self.phase = phase

    def __str__(self) -> str:
        base = super().__str__()
        ctx = [f"{k}={v}" for k, v in (("phase", self.phase), ("scheme", self.scheme)) if v]
        return f"{base} ({', '.join(ctx)})" if ctx else base


class TransportError(BenchmarkError):
    """Key endpoint unreachable, timed out or answered with a non-2xx status."""


class DecodeError(BenchmarkError):
    """Malformed JSON body or base64 payload."""


class KeyParseError(BenchmarkError):
    """Decoded bytes are not a valid public key for the declared scheme."""


class PayloadTooLarge(BenchmarkError):
    """Symmetric key exceeds what the scheme can carry."""


class WrapError(BenchmarkError):
    """Underlying encryption/encapsulation primitive failed."""


class RandomSourceExhausted(BenchmarkError):
    """Secure randomness could not be obtained."""


class CipherInitError(BenchmarkError):
    """Symmetric cipher rejected the key."""


class ConfigError(ValueError):
    """Invalid configuration value."""
