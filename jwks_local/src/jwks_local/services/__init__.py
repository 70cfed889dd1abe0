"""Service layer: key management, resolution, export and token issuance."""
from .exporter import export_key_set
from .key_manager import KeyManager
from .resolver import resolve_kid, resolve_signing_key
from .token_issuer import IssuedToken, TokenIssuer, TokenRequest, issue_token

__all__ = [
    "IssuedToken",
    "KeyManager",
    "TokenIssuer",
    "TokenRequest",
    "export_key_set",
    "issue_token",
    "resolve_kid",
    "resolve_signing_key",
]
