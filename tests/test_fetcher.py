from __future__ import annotations

import base64

import pytest
import requests

from hybridbench.errors import DecodeError, KeyParseError, TransportError
from hybridbench.fetcher import HttpPublicKeyFetcher, LocalKeySource

URL = "http://rsa-server:8080/public-key"


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def test_fetch_decodes_payload(classical, fake_session, fake_response) -> None:
    raw = b"p" * 294
    session = fake_session(fake_response(200, {"public_key": _b64(raw), "key_size": 2048}))
    material = HttpPublicKeyFetcher(classical, URL, timeout=2.5, session=session).fetch()
    assert material.scheme == "rsa"
    assert material.raw == raw
    assert material.size == 294
    assert material.declared_key_size == 2048
    assert material.algorithm is None
    assert material.key == raw
    assert session.calls == [(URL, 2.5)]


def test_fetch_keeps_algorithm_field(candidate, fake_session, fake_response) -> None:
    raw = b"p" * 1184
    body = {"public_key": _b64(raw), "key_size": 1184, "algorithm": "ML-KEM-768 (Kyber-768)"}
    material = HttpPublicKeyFetcher(candidate, URL, session=fake_session(fake_response(200, body))).fetch()
    assert material.algorithm == "ML-KEM-768 (Kyber-768)"


@pytest.mark.parametrize(
    "exc",
    [
        requests.ConnectionError("refused"),
        requests.Timeout("read timed out"),
    ],
)
def test_transport_failures(classical, fake_session, exc) -> None:
    fetcher = HttpPublicKeyFetcher(classical, URL, session=fake_session(exc=exc))
    with pytest.raises(TransportError) as info:
        fetcher.fetch()
    assert info.value.scheme == "rsa"
    assert info.value.__cause__ is exc


@pytest.mark.parametrize("status", [301, 404, 500, 503])
def test_non_success_status(classical, fake_session, fake_response, status) -> None:
    session = fake_session(fake_response(status, {"public_key": _b64(b"x")}))
    with pytest.raises(TransportError, match=str(status)):
        HttpPublicKeyFetcher(classical, URL, session=session).fetch()


@pytest.mark.parametrize(
    "response_kwargs",
    [
        {"text": "<html>"},
        {"payload": ["not", "an", "object"]},
        {"payload": {"key_size": 2048}},
        {"payload": {"public_key": 42}},
        {"payload": {"public_key": ""}},
        {"payload": {"public_key": "!!!not-base64!!!"}},
        {"payload": {"public_key": "cHVi"[:3]}},
        {"payload": {"public_key": "cHVi", "key_size": "2048"}},
        {"payload": {"public_key": "cHVi", "key_size": True}},
    ],
)
def test_malformed_payload(classical, fake_session, fake_response, response_kwargs) -> None:
    session = fake_session(fake_response(200, **response_kwargs))
    with pytest.raises(DecodeError):
        HttpPublicKeyFetcher(classical, URL, session=session).fetch()


def test_key_parse_error(classical, fake_session, fake_response) -> None:
    session = fake_session(fake_response(200, {"public_key": _b64(b"bad key bytes")}))
    with pytest.raises(KeyParseError):
        HttpPublicKeyFetcher(classical, URL, session=session).fetch()


def test_unexpected_parser_exception_becomes_key_parse_error(classical, fake_session, fake_response) -> None:
    def explode(raw):
        raise IndexError("truncated")

    classical.load_public_key = explode
    session = fake_session(fake_response(200, {"public_key": _b64(b"abc")}))
    with pytest.raises(KeyParseError) as info:
        HttpPublicKeyFetcher(classical, URL, session=session).fetch()
    assert isinstance(info.value.__cause__, IndexError)


@pytest.mark.parametrize("timeout", [0, -1, float("inf"), float("nan")])
def test_timeout_must_be_finite(classical, timeout) -> None:
    with pytest.raises(ValueError):
        HttpPublicKeyFetcher(classical, URL, timeout=timeout)


def test_local_source_reports_keygen_time(candidate) -> None:
    seen = []
    source = LocalKeySource(candidate, on_keygen=lambda scheme, secs: seen.append((scheme, secs)))
    material = source.fetch()
    assert material.size == 1184
    assert material.key == b"p" * 1184
    assert source.last_secret_key == b"s" * 8
    assert len(seen) == 1
    assert seen[0][0] == "ml-kem"
    assert seen[0][1] >= 0.0


def test_local_source_keygen_failure(candidate) -> None:
    def boom():
        raise RuntimeError("no entropy")

    candidate.keygen = boom
    with pytest.raises(TransportError):
        LocalKeySource(candidate).fetch()
