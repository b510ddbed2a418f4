from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

"""Per-tick data containers.

Everything here is transient: produced during one tick, consumed by the
aggregator or the CLI summary, then dropped.
"""

@dataclass(frozen=True)
class PublicKeyMaterial:
    scheme: str
    raw: bytes
    declared_key_size: Optional[int] = None
    algorithm: Optional[str] = None
    key: Any = field(default=None, repr=False, compare=False)

    @property
    def size(self) -> int:
        return len(self.raw)

@dataclass(frozen=True)
class TimingSample:
    scheme: str
    duration: float  # seconds

@dataclass(frozen=True)
class WrapResult:
    scheme: str
    wrapped: bytes = field(repr=False)
    duration: float

    @property
    def size(self) -> int:
        return len(self.wrapped)

    @property
    def sample(self) -> TimingSample:
        return TimingSample(self.scheme, self.duration)

@dataclass(frozen=True)
class EncryptedEnvelope:
    wrapped_keys: Dict[str, bytes] = field(repr=False)
    ciphertext: bytes = field(repr=False)
    iv: bytes = field(repr=False)

@dataclass
class TickResult:
    tick: int
    message: str
    keys: Dict[str, PublicKeyMaterial]
    envelope: EncryptedEnvelope
    wraps: Dict[str, WrapResult]
    duration: float

    def summary(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "message_preview": self.message[:30],
            "duration_s": self.duration,
            "ciphertext_bytes": len(self.envelope.ciphertext),
            "iv_bytes": len(self.envelope.iv),
            "schemes": {
                name: {
                    "public_key_bytes": self.keys[name].size,
                    "declared_key_size": self.keys[name].declared_key_size,
                    "algorithm": self.keys[name].algorithm,
                    "wrapped_key_bytes": wrap.size,
                    "wrap_duration_s": wrap.duration,
                }
                for name, wrap in self.wraps.items()
            },
        }
