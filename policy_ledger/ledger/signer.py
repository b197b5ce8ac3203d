"""
Request signer backed by a PEM private key.

EC keys sign with ECDSA over SHA-256 (P-256) or SHA-384 (P-384) and the DER
signature is normalised to low-S, which is the only form ledger peers accept.
Ed25519 keys sign the message directly.
"""

from __future__ import annotations

from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature, encode_dss_signature
from cryptography.hazmat.primitives.serialization import load_pem_private_key

from .errors import InvalidKeyMaterialError

# Group orders for the curves MSP tooling issues keys on.
_CURVE_ORDERS = {
    "secp256r1": 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551,
    "secp384r1": int(
        "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFC7634D81F4372DDF581A0DB248B0A77AECEC196ACCC52973",
        16,
    ),
}

_CURVE_HASHES = {
    "secp256r1": hashes.SHA256,
    "secp384r1": hashes.SHA384,
}

PrivateKey = Union[ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey]


class Signer:
    """Holds one private key and signs messages with it."""

    def __init__(self, private_key: PrivateKey) -> None:
        if isinstance(private_key, ec.EllipticCurvePrivateKey):
            curve = private_key.curve.name
            if curve not in _CURVE_ORDERS:
                raise InvalidKeyMaterialError(f"Unsupported elliptic curve: {curve}")
            self._order = _CURVE_ORDERS[curve]
            self._hash = _CURVE_HASHES[curve]
        elif not isinstance(private_key, ed25519.Ed25519PrivateKey):
            raise InvalidKeyMaterialError(f"Unsupported private key type: {type(private_key).__name__}")
        self._key = private_key

    @property
    def algorithm(self) -> str:
        if isinstance(self._key, ed25519.Ed25519PrivateKey):
            return "Ed25519"
        return f"ECDSA-{self._key.curve.name}"

    def public_key(self):
        return self._key.public_key()

    def sign(self, message: bytes) -> bytes:
        if isinstance(self._key, ed25519.Ed25519PrivateKey):
            return self._key.sign(message)

        der = self._key.sign(message, ec.ECDSA(self._hash()))
        r, s = decode_dss_signature(der)
        if s > self._order // 2:
            s = self._order - s
        return encode_dss_signature(r, s)

    def __repr__(self) -> str:
        return f"Signer(algorithm={self.algorithm!r})"


def make_signer(private_key_pem: bytes) -> Signer:
    try:
        key = load_pem_private_key(private_key_pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise InvalidKeyMaterialError(f"Private key could not be parsed: {exc}") from exc
    return Signer(key)
