from __future__ import annotations
from typing import Any, Tuple
from hybridbench import registry
from hybridbench.errors import KeyParseError, PayloadTooLarge, WrapError
from hybridbench.models import WrapResult
from hybridbench.timing import timed

from cryptography.hazmat.primitives.asymmetric import rsa, padding
from cryptography.hazmat.primitives import hashes, serialization
import os

def _gen_rsa_keypair(bits: int = 2048):
    sk = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    pk = sk.public_key()
    sk_bytes = sk.private_bytes(
        serialization.Encoding.DER,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    pk_bytes = pk.public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return pk_bytes, sk_bytes


def _rsa_bits() -> int:
    override = os.getenv("HYBRIDBENCH_RSA_BITS")
    if override:
        try:
            return int(override)
        except ValueError as exc:
            raise ValueError("HYBRIDBENCH_RSA_BITS must be an integer") from exc
    return 2048

def _oaep() -> padding.OAEP:
    return padding.OAEP(mgf=padding.MGF1(algorithm=hashes.SHA256()),
                        algorithm=hashes.SHA256(),
                        label=None)

def max_oaep_payload(modulus_bytes: int, digest_size: int = hashes.SHA256.digest_size) -> int:
    """Largest message RSA-OAEP can carry for a ``modulus_bytes`` modulus."""
    return modulus_bytes - 2 * digest_size - 2

@registry.register("rsa")
class RSAOAEPScheme:
    """Classical baseline: the symmetric key is encrypted directly with RSA-OAEP.

    Public keys travel as DER SubjectPublicKeyInfo, the format the RSA key
    service serves (base64 in the JSON body).
    """
    name = "rsa"
    classical = True

    def __init__(self) -> None:
        self._bits = _rsa_bits()
        self.algorithm = f"RSA-{self._bits}-OAEP-SHA256"

    def keygen(self) -> Tuple[bytes, bytes]:
        return _gen_rsa_keypair(self._bits)

    def load_public_key(self, raw: bytes) -> rsa.RSAPublicKey:
        try:
            pk = serialization.load_der_public_key(raw)
        except (ValueError, TypeError) as exc:
            raise KeyParseError(f"not a DER public key: {exc}", scheme=self.name) from exc
        if not isinstance(pk, rsa.RSAPublicKey):
            raise KeyParseError(f"expected an RSA public key, got {type(pk).__name__}", scheme=self.name)
        return pk

    def wrap(self, public_key: Any, symmetric_key: bytes) -> WrapResult:
        limit = max_oaep_payload((public_key.key_size + 7) // 8)
        if len(symmetric_key) > limit:
            raise PayloadTooLarge(
                f"{len(symmetric_key)}-byte key exceeds the {limit}-byte OAEP limit "
                f"of a {public_key.key_size}-bit modulus",
                scheme=self.name,
            )
        try:
            ct, elapsed = timed(public_key.encrypt, symmetric_key, _oaep())
        except Exception as exc:
            raise WrapError(f"RSA-OAEP encryption failed: {exc}", scheme=self.name) from exc
        return WrapResult(self.name, ct, elapsed)

    def unwrap(self, secret_key: bytes, wrapped: bytes) -> bytes:
        sk = serialization.load_der_private_key(secret_key, password=None)
        return sk.decrypt(wrapped, _oaep())
