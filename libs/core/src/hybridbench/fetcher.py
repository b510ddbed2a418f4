from __future__ import annotations
"""Public-key sources for the benchmark loop.

``HttpPublicKeyFetcher`` pulls a fresh key from a key-issuing endpoint that
answers ``{"public_key": <base64>, "key_size": <int>, "algorithm": <str>?}``.
``LocalKeySource`` generates the key pair in-process instead, which is what
the issuing services do on every request, and reports key-generation time.
"""

import base64
import binascii
import logging
import math
from typing import Any, Callable, Optional, Protocol

import requests

from .errors import BenchmarkError, DecodeError, KeyParseError, TransportError
from .interfaces import KeyWrapScheme
from .models import PublicKeyMaterial
from .timing import timed

log = logging.getLogger(__name__)


class KeySource(Protocol):
    scheme: KeyWrapScheme
    def fetch(self) -> PublicKeyMaterial: ...


def _parse_key(scheme: KeyWrapScheme, raw: bytes) -> Any:
    try:
        return scheme.load_public_key(raw)
    except BenchmarkError:
        raise
    except Exception as exc:
        raise KeyParseError(f"invalid public key: {exc}", scheme=scheme.name) from exc


class HttpPublicKeyFetcher:
    def __init__(
        self,
        scheme: KeyWrapScheme,
        url: str,
        *,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if timeout is None or not math.isfinite(timeout) or timeout <= 0:
            raise ValueError("transport timeout must be a finite positive number")
        self.scheme = scheme
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()

    def fetch(self) -> PublicKeyMaterial:
        name = self.scheme.name
        try:
            resp = self._session.get(self.url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"GET {self.url} failed: {exc}", scheme=name) from exc
        if not 200 <= resp.status_code < 300:
            raise TransportError(f"GET {self.url} returned HTTP {resp.status_code}", scheme=name)

        try:
            body = resp.json()
        except ValueError as exc:
            raise DecodeError(f"response is not JSON: {exc}", scheme=name) from exc
        if not isinstance(body, dict):
            raise DecodeError("response JSON is not an object", scheme=name)

        encoded = body.get("public_key")
        if not isinstance(encoded, str) or not encoded:
            raise DecodeError("response has no 'public_key' string", scheme=name)
        key_size = body.get("key_size")
        if key_size is not None and (isinstance(key_size, bool) or not isinstance(key_size, int)):
            raise DecodeError(f"'key_size' must be an integer, got {key_size!r}", scheme=name)
        algorithm = body.get("algorithm")

        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError(f"malformed base64 public key: {exc}", scheme=name) from exc

        key = _parse_key(self.scheme, raw)
        log.debug("fetched %s public key from %s (%d bytes)", name, self.url, len(raw))
        return PublicKeyMaterial(
            scheme=name,
            raw=raw,
            declared_key_size=key_size,
            algorithm=algorithm if isinstance(algorithm, str) else None,
            key=key,
        )


class LocalKeySource:
    """Generate a fresh key pair per fetch through the scheme adapter.

    ``on_keygen`` fires as soon as the pair exists, before the tick is known to
    succeed, so issuer-side timings count every key issued, as on the remote
    key services.
    """

    def __init__(
        self,
        scheme: KeyWrapScheme,
        *,
        on_keygen: Optional[Callable[[str, float], None]] = None,
    ) -> None:
        self.scheme = scheme
        self.on_keygen = on_keygen
        self.last_secret_key: bytes | None = None

    def fetch(self) -> PublicKeyMaterial:
        name = self.scheme.name
        try:
            (pk, sk), elapsed = timed(self.scheme.keygen)
        except Exception as exc:
            raise TransportError(f"local key issuer failed: {exc}", scheme=name) from exc
        self.last_secret_key = sk
        if self.on_keygen is not None:
            self.on_keygen(name, elapsed)
        log.debug("generated %s key pair locally in %.6fs", name, elapsed)
        return PublicKeyMaterial(
            scheme=name,
            raw=pk,
            declared_key_size=len(pk),
            algorithm=getattr(self.scheme, "algorithm", None),
            key=_parse_key(self.scheme, pk),
        )
