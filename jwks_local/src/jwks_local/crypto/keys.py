# P-256 key pairs: generation, reconstruction and JWK conversion.
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from ..exceptions import (
    InvalidKeyMaterialError,
    InvalidKeyNameError,
    UnsupportedAlgorithmError,
)
from ..models import KEY_USE, SUPPORTED_ALG, SUPPORTED_CRV, JsonWebKey
from ..utils.b64 import b64d, b64e
from .identity import derive_kid

COORDINATE_SIZE = 32

_KEY_NAME = re.compile(r"^[a-zA-Z0-9_-]+$")


@dataclass(slots=True)
class GeneratedKey:
    entry: JsonWebKey
    private_bytes: bytes


class EcKeyPair:
    """ES256 key pair with its content-derived identifier."""

    def __init__(self, private: ec.EllipticCurvePrivateKey | None = None, public: ec.EllipticCurvePublicKey | None = None):
        if private is None and public is None:
            raise InvalidKeyMaterialError("At least one of private or public key is required")
        self._priv = private
        self._pub = public or private.public_key()  # type: ignore[union-attr]
        self._x, self._y = _coordinates(self._pub)

    @staticmethod
    def generate() -> "EcKeyPair":
        return EcKeyPair(private=ec.generate_private_key(ec.SECP256R1()))

    @staticmethod
    def from_pkcs8(data: bytes) -> "EcKeyPair":
        try:
            key = serialization.load_der_private_key(data, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise InvalidKeyMaterialError("Private key is not a valid PKCS#8 key") from exc
        return EcKeyPair(private=_require_ec_private(key))

    @staticmethod
    def from_pem(data: bytes) -> "EcKeyPair":
        try:
            key = serialization.load_pem_private_key(data, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise InvalidKeyMaterialError("Private key file is not a valid PEM private key") from exc
        return EcKeyPair(private=_require_ec_private(key))

    @property
    def private_key(self) -> ec.EllipticCurvePrivateKey:
        if self._priv is None:
            raise InvalidKeyMaterialError("Private key material is not available")
        return self._priv

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self._pub

    @property
    def kid(self) -> str:
        return derive_kid(self._pub)

    def coordinates(self) -> Tuple[bytes, bytes]:
        return self._x, self._y

    def private_pkcs8(self) -> bytes:
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def private_pem_pkcs8(self) -> bytes:
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def to_jwk(self, name: Optional[str] = None) -> JsonWebKey:
        data = {
            "kty": "EC",
            "use": KEY_USE,
            "alg": SUPPORTED_ALG,
            "kid": self.kid,
            "crv": SUPPORTED_CRV,
            "x": b64e(self._x),
            "y": b64e(self._y),
        }
        if name is not None:
            data["name"] = name
        return JsonWebKey.model_validate(data)


def _require_ec_private(key: object) -> ec.EllipticCurvePrivateKey:
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise InvalidKeyMaterialError("Private key is not an EC key")
    return key


def _coordinates(public_key: ec.EllipticCurvePublicKey) -> Tuple[bytes, bytes]:
    if not isinstance(public_key.curve, ec.SECP256R1):
        raise InvalidKeyMaterialError("Unexpected EC key size. Expected P-256 key.")
    point = public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    # 0x04 || X || Y
    if len(point) != 1 + 2 * COORDINATE_SIZE:
        raise InvalidKeyMaterialError("Unexpected EC key size. Expected P-256 key.")
    return point[1 : 1 + COORDINATE_SIZE], point[1 + COORDINATE_SIZE :]


def validate_algorithm(alg: str) -> None:
    if alg.upper() != SUPPORTED_ALG:
        raise UnsupportedAlgorithmError(f"Unsupported algorithm. Only {SUPPORTED_ALG} is supported.")


def validate_key_name(name: Optional[str]) -> None:
    if name and not _KEY_NAME.fullmatch(name):
        raise InvalidKeyNameError(
            "Invalid name. Only alphanumeric characters, hyphens, and underscores are allowed."
        )


def generate_key(name: Optional[str] = None, alg: str = SUPPORTED_ALG) -> GeneratedKey:
    """Create a fresh P-256 key pair and its public key set entry.

    Nothing is persisted; the caller hands the result to the key store.
    """
    validate_algorithm(alg)
    validate_key_name(name)
    pair = EcKeyPair.generate()
    return GeneratedKey(entry=pair.to_jwk(name or None), private_bytes=pair.private_pkcs8())


def load_signing_key(data: bytes) -> EcKeyPair:
    return EcKeyPair.from_pkcs8(data)


def public_key_from_entry(entry: JsonWebKey) -> ec.EllipticCurvePublicKey:
    """Rebuild the verifying key described by a key set entry."""
    if entry.kty != "EC" or entry.crv != SUPPORTED_CRV or not entry.x or not entry.y:
        raise InvalidKeyMaterialError(f"Key {entry.kid} is not a {SUPPORTED_CRV} EC key")
    try:
        x = b64d(entry.x)
        y = b64d(entry.y)
    except ValueError as exc:
        raise InvalidKeyMaterialError(f"Key {entry.kid} has malformed coordinates") from exc
    if len(x) != COORDINATE_SIZE or len(y) != COORDINATE_SIZE:
        raise InvalidKeyMaterialError("Unexpected EC key size. Expected P-256 key.")
    numbers = ec.EllipticCurvePublicNumbers(
        int.from_bytes(x, "big"), int.from_bytes(y, "big"), ec.SECP256R1()
    )
    try:
        return numbers.public_key()
    except ValueError as exc:
        raise InvalidKeyMaterialError(f"Key {entry.kid} is not a point on {SUPPORTED_CRV}") from exc


__all__ = [
    "COORDINATE_SIZE",
    "EcKeyPair",
    "GeneratedKey",
    "generate_key",
    "load_signing_key",
    "public_key_from_entry",
    "validate_algorithm",
    "validate_key_name",
]
