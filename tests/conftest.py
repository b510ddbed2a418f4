from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List

import pytest

ROOT = Path(__file__).resolve().parents[1]

for rel in (
    Path("libs/core/src"),
    Path("libs/adapters/rsa/src"),
    Path("libs/adapters/liboqs/src"),
    Path("apps/cli/src"),
):
    candidate = str(ROOT / rel)
    if candidate not in sys.path:
        sys.path.insert(0, candidate)

from hybridbench.errors import KeyParseError  # noqa: E402
from hybridbench.models import PublicKeyMaterial, WrapResult  # noqa: E402


class DummyScheme:
    """Deterministic stand-in for a key-wrap adapter."""

    def __init__(
        self,
        name: str,
        *,
        classical: bool,
        pk_len: int,
        wrapped_len: int,
        duration: float,
    ) -> None:
        self.name = name
        self.classical = classical
        self.pk_len = pk_len
        self.wrapped_len = wrapped_len
        self.duration = duration
        self.seen_keys: List[bytes] = []
        self.fail_with: Exception | None = None

    def keygen(self) -> tuple[bytes, bytes]:
        return b"p" * self.pk_len, b"s" * 8

    def load_public_key(self, raw: bytes) -> bytes:
        if raw.startswith(b"bad"):
            raise KeyParseError("rejected by dummy", scheme=self.name)
        return raw

    def wrap(self, public_key, symmetric_key: bytes) -> WrapResult:
        if self.fail_with is not None:
            raise self.fail_with
        self.seen_keys.append(symmetric_key)
        return WrapResult(self.name, b"w" * self.wrapped_len, self.duration)

    def unwrap(self, secret_key: bytes, wrapped: bytes) -> bytes:
        return self.seen_keys[-1]


class StaticSource:
    def __init__(self, scheme: DummyScheme, raw: bytes | None = None) -> None:
        self.scheme = scheme
        self.raw = raw if raw is not None else b"p" * scheme.pk_len
        self.calls = 0

    def fetch(self) -> PublicKeyMaterial:
        self.calls += 1
        return PublicKeyMaterial(
            scheme=self.scheme.name,
            raw=self.raw,
            declared_key_size=len(self.raw),
            key=self.scheme.load_public_key(self.raw),
        )


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def json(self):
        if self._text is not None:
            raise ValueError(f"Expecting value: {self._text[:10]!r}")
        return self._payload


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, exc: Exception | None = None) -> None:
        self.response = response
        self.exc = exc
        self.calls: list[tuple[str, float]] = []

    def get(self, url: str, timeout: float | None = None):
        self.calls.append((url, timeout))
        if self.exc is not None:
            raise self.exc
        return self.response


@pytest.fixture
def classical() -> DummyScheme:
    return DummyScheme("rsa", classical=True, pk_len=294, wrapped_len=256, duration=0.1)


@pytest.fixture
def candidate() -> DummyScheme:
    return DummyScheme("ml-kem", classical=False, pk_len=1184, wrapped_len=1088, duration=0.002)


@pytest.fixture
def make_source() -> Callable[..., StaticSource]:
    return StaticSource


@pytest.fixture
def fake_session() -> Callable[..., FakeSession]:
    return FakeSession


@pytest.fixture
def fake_response() -> Callable[..., FakeResponse]:
    return FakeResponse
