"""Key generation and identity helpers."""
from .identity import derive_kid, derive_kid_from_spki
from .keys import EcKeyPair, GeneratedKey, generate_key, load_signing_key, public_key_from_entry

__all__ = [
    "EcKeyPair",
    "GeneratedKey",
    "derive_kid",
    "derive_kid_from_spki",
    "generate_key",
    "load_signing_key",
    "public_key_from_entry",
]
