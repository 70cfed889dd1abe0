"""Central exception hierarchy."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence


class JwksError(Exception):
    """Base exception for all key store failures"""


class NotInitializedError(JwksError):
    """Raised when no key set document is found at any resolution path"""

    def __init__(self, message: str = "Not initialized.") -> None:
        super().__init__(message)


class AlreadyInitializedError(JwksError):
    """Raised when initializing over an existing store without force"""

    def __init__(self, path: Path) -> None:
        super().__init__("JWKS already initialized. Use --force to re-initialize.")
        self.path = path


class KeyNotFoundError(JwksError):
    """Raised when a key identifier or prefix matches nothing"""


class AmbiguousKeyError(JwksError):
    """Raised when a key identifier prefix matches more than one key"""

    def __init__(self, prefix: str, matches: Sequence[str]) -> None:
        if prefix:
            message = f"Multiple keys found with the key ID prefix '{prefix}'. Please specify a more specific key ID."
        else:
            message = "Multiple keys available. Please specify a key ID."
        super().__init__(message)
        self.prefix = prefix
        self.matches = tuple(matches)


class InvalidInputError(JwksError):
    """Raised for malformed caller input"""


class InvalidClaimError(InvalidInputError):
    """Raised when a claim string is not of the form ``type=value``"""


class UnsupportedAlgorithmError(InvalidInputError):
    """Raised when a signing algorithm other than ES256 is requested"""


class InvalidKeyNameError(InvalidInputError):
    """Raised when a key name contains characters outside ``[a-zA-Z0-9_-]``"""


class DuplicateKeyError(InvalidInputError):
    """Raised when adding a key whose identifier is already in the set"""


class KeyCollisionError(InvalidInputError):
    """Raised when two identifiers would share one private key file"""


class InvalidDocumentError(InvalidInputError):
    """Raised when the key set document cannot be decoded"""


class MissingPrivateKeyError(JwksError):
    """Raised when a key entry exists but its private key file does not"""

    def __init__(self, kid: str, path: Path) -> None:
        super().__init__(f"Private key file not found ({path.name}).")
        self.kid = kid
        self.path = path


class InvalidKeyMaterialError(JwksError):
    """Raised when decoded key material fails curve or size validation"""


class OperationCancelledError(JwksError):
    """Raised between steps of a batch once cancellation was requested"""


__all__ = [
    "JwksError",
    "NotInitializedError",
    "AlreadyInitializedError",
    "KeyNotFoundError",
    "AmbiguousKeyError",
    "InvalidInputError",
    "InvalidClaimError",
    "UnsupportedAlgorithmError",
    "InvalidKeyNameError",
    "DuplicateKeyError",
    "KeyCollisionError",
    "InvalidDocumentError",
    "MissingPrivateKeyError",
    "InvalidKeyMaterialError",
    "OperationCancelledError",
]
