from __future__ import annotations

import pytest

from hybridbench import symmetric
from hybridbench.errors import CipherInitError, RandomSourceExhausted
from hybridbench.symmetric import SymmetricEncryptor


@pytest.mark.parametrize(
    "message",
    [
        b"",
        b"a",
        b"exactly sixteen!",
        "量子コンピュータに対抗するポスト量子暗号".encode("utf-8"),
        bytes(range(256)) * 3,
    ],
)
def test_round_trip_recovers_message(message: bytes) -> None:
    enc = SymmetricEncryptor()
    key = enc.generate_key()
    ciphertext, iv = enc.encrypt(message, key)
    assert len(iv) == 16
    assert len(ciphertext) % 16 == 0
    # PKCS7 always adds at least one byte of padding.
    assert len(ciphertext) > len(message)
    assert enc.decrypt(ciphertext, key, iv) == message


def test_keys_and_ivs_are_fresh() -> None:
    enc = SymmetricEncryptor()
    keys = {enc.generate_key() for _ in range(200)}
    assert len(keys) == 200
    assert all(len(k) == 32 for k in keys)
    key = enc.generate_key()
    ivs = {enc.encrypt(b"same", key)[1] for _ in range(50)}
    assert len(ivs) == 50


@pytest.mark.parametrize("size", [0, 16, 24, 31, 33])
def test_wrong_key_length_rejected(size: int) -> None:
    with pytest.raises(CipherInitError):
        SymmetricEncryptor().encrypt(b"data", b"k" * size)


def test_random_source_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(n: int) -> bytes:
        raise OSError("getrandom failed")

    monkeypatch.setattr(symmetric.os, "urandom", broken)
    with pytest.raises(RandomSourceExhausted):
        SymmetricEncryptor().generate_key()


def test_short_random_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(symmetric.os, "urandom", lambda n: b"\x00" * (n - 1))
    with pytest.raises(RandomSourceExhausted):
        SymmetricEncryptor().generate_key()
