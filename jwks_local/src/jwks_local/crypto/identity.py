# Content-derived key identifiers.
from __future__ import annotations

import hashlib

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec


def spki_der(public_key: ec.EllipticCurvePublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def derive_kid_from_spki(spki: bytes) -> str:
    """Lowercase hex SHA-256 of a DER SubjectPublicKeyInfo."""
    return hashlib.sha256(spki).hexdigest()


def derive_kid(public_key: ec.EllipticCurvePublicKey) -> str:
    return derive_kid_from_spki(spki_der(public_key))


__all__ = ["derive_kid", "derive_kid_from_spki", "spki_der"]
