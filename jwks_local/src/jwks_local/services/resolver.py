# Resolve user supplied key ID prefixes against the key store.
from __future__ import annotations

from typing import Optional

from ..exceptions import AmbiguousKeyError, KeyNotFoundError
from ..models import JsonWebKey
from ..store.keystore import KeyStore


def resolve_kid(store: KeyStore, prefix: str) -> JsonWebKey:
    """Return the single entry whose kid starts with ``prefix``.

    More than one match is always an error: picking a key for signing or
    removal is never done implicitly.
    """
    matches = store.select_keys(prefix)
    if not matches:
        raise KeyNotFoundError("Key not found.")
    if len(matches) > 1:
        raise AmbiguousKeyError(prefix, [key.kid for key in matches])
    return matches[0]


def resolve_signing_key(store: KeyStore, prefix: Optional[str] = None) -> JsonWebKey:
    """Pick the signing key for a token request.

    Without a prefix the store must hold exactly one key.
    """
    if not prefix:
        if len(store) == 0:
            raise KeyNotFoundError("No keys available in the JWKS.")
        return resolve_kid(store, "")
    return resolve_kid(store, prefix)


__all__ = ["resolve_kid", "resolve_signing_key"]
