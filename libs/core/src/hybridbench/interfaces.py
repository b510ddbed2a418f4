from __future__ import annotations
from typing import Any, Protocol, Tuple

from .models import WrapResult

"""Scheme interface used by adapters.

Adapters implement this Protocol and register themselves into the global
registry. The runner and CLI interact only with this interface, never with
vendor libraries directly.
"""

class KeyWrapScheme(Protocol):
    """Protect a symmetric key under a received public key."""
    name: str
    classical: bool
    def load_public_key(self, raw: bytes) -> Any: ...
    def wrap(self, public_key: Any, symmetric_key: bytes) -> WrapResult: ...
    def keygen(self) -> Tuple[bytes, bytes]: ...
    def unwrap(self, secret_key: bytes, wrapped: bytes) -> bytes: ...
