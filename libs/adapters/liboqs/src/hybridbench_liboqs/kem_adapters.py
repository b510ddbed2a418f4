from __future__ import annotations
from typing import Any, Tuple

from cryptography.hazmat.primitives.keywrap import aes_key_unwrap, aes_key_wrap

from hybridbench import registry
from hybridbench.errors import KeyParseError, WrapError
from hybridbench.models import WrapResult
from hybridbench.timing import timed
from ._util import try_import_oqs, pick_kem_algorithm


@registry.register("ml-kem")
class MLKEMScheme:
    """Post-quantum candidate: ML-KEM encapsulation under the received key.

    By default the wrapped artifact is the KEM ciphertext alone and the shared
    secret is discarded, which measures encapsulation cost and artifact size.
    With ``bind_secret`` the shared secret becomes an AES key-wrap KEK for the
    tick's symmetric key, and the artifact is ``ciphertext || wrapped_key``.
    """
    name = "ml-kem"
    classical = False

    def __init__(self, bind_secret: bool = False) -> None:
        oqs = try_import_oqs()
        if oqs is None:
            raise RuntimeError("liboqs-python (module 'oqs') is not available; install liboqs-python")
        self._oqs = oqs
        # Prefer NIST names, then legacy names; try instantiation to confirm availability
        self.alg = pick_kem_algorithm(
            oqs,
            "HYBRIDBENCH_MLKEM_ALG",
            [
                "ML-KEM-768",
                "Kyber768",
            ],
        )
        if not self.alg:
            raise RuntimeError("No supported ML-KEM-768/Kyber768 mechanism enabled in liboqs")
        self.algorithm = self.alg
        self.bind_secret = bind_secret
        with oqs.KeyEncapsulation(self.alg) as kem:
            details = kem.details
        self.public_key_length = int(details["length_public_key"])
        self.ciphertext_length = int(details["length_ciphertext"])

    def keygen(self) -> Tuple[bytes, bytes]:
        with self._oqs.KeyEncapsulation(self.alg) as kem:
            pk = kem.generate_keypair()
            sk = kem.export_secret_key()
            return pk, sk

    def load_public_key(self, raw: bytes) -> bytes:
        if len(raw) != self.public_key_length:
            raise KeyParseError(
                f"{self.alg} public key must be {self.public_key_length} bytes, got {len(raw)}",
                scheme=self.name,
            )
        return bytes(raw)

    def wrap(self, public_key: Any, symmetric_key: bytes) -> WrapResult:
        try:
            with self._oqs.KeyEncapsulation(self.alg) as kem:
                (ct, ss), elapsed = timed(kem.encap_secret, public_key)
            if self.bind_secret:
                wrapped_key, wrap_elapsed = timed(aes_key_wrap, ss, symmetric_key)
                return WrapResult(self.name, ct + wrapped_key, elapsed + wrap_elapsed)
        except Exception as exc:
            raise WrapError(f"{self.alg} encapsulation failed: {exc}", scheme=self.name) from exc
        return WrapResult(self.name, ct, elapsed)

    def unwrap(self, secret_key: bytes, wrapped: bytes) -> bytes:
        """Recover the shared secret, or the symmetric key when bound."""
        ct, wrapped_key = wrapped[:self.ciphertext_length], wrapped[self.ciphertext_length:]
        with self._oqs.KeyEncapsulation(self.alg, secret_key=secret_key) as kem:
            ss = kem.decap_secret(ct)
        if self.bind_secret:
            return aes_key_unwrap(ss, wrapped_key)
        return ss
