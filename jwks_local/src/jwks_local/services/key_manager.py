# Manage the lifecycle of keys (init, generate, remove, export, sign).
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import structlog

from ..context import OperationContext
from ..crypto.keys import EcKeyPair, GeneratedKey, generate_key
from ..exceptions import (
    AlreadyInitializedError,
    InvalidInputError,
    KeyNotFoundError,
    NotInitializedError,
)
from ..models import SUPPORTED_ALG, JsonWebKey, KeySetDocument
from ..paths import DOCUMENT_NAME
from ..store.codec import encode_document
from ..store.keystore import KeyStore
from ..store.paths import StoreLocator
from ..utils.b64 import std_b64e
from .exporter import export_key_set
from .resolver import resolve_kid
from .token_issuer import IssuedToken, TokenRequest, issue_token

DETACHED_PRIVATE_KEY_NAME = "private_key.pem"


@dataclass(slots=True)
class ExportOutcome:
    store: KeyStore
    entries: List[JsonWebKey]
    document: Optional[str]


def _bound(store: KeyStore) -> KeyStore:
    # Later log records of this command carry the store root.
    structlog.contextvars.bind_contextvars(store=str(store.root))
    return store


class KeyManager:
    """Store-level operations behind each command.

    ``jwks_path`` is the optional explicit location given by the caller; it
    is resolved with the directory policy of :class:`StoreLocator`.
    """

    def __init__(self, context: OperationContext | None = None, locator: StoreLocator | None = None):
        self.context = context or OperationContext()
        self.locator = locator or StoreLocator(self.context.config.store.resolved_default_dir())

    def open_store(self, jwks_path: Optional[Path] = None) -> KeyStore:
        return _bound(KeyStore.open(jwks_path, locator=self.locator))

    def init_store(self, jwks_path: Optional[Path] = None, force: bool = False) -> KeyStore:
        existing = self.locator.find_root(jwks_path)
        if existing is not None and not force:
            raise AlreadyInitializedError(existing)
        return _bound(KeyStore.initialize(self.locator.init_target(jwks_path)))

    def create_key(self, store: KeyStore, name: Optional[str] = None, alg: str = SUPPORTED_ALG) -> JsonWebKey:
        generated = generate_key(name, alg)
        return store.add_key(generated.entry, generated.private_bytes)

    def store_root(self, jwks_path: Optional[Path] = None) -> Path:
        root = self.locator.find_root(jwks_path)
        if root is None:
            raise NotInitializedError()
        return root

    def generate_detached(self, name: Optional[str] = None, alg: str = SUPPORTED_ALG) -> GeneratedKey:
        """Generate a key for export only; no store is changed."""
        return generate_key(name, alg)

    def export_detached(self, generated: GeneratedKey, output_dir: Optional[Path] = None) -> Optional[str]:
        """Write ``jwks.json`` and ``private_key.pem`` to ``output_dir``, or return console text."""
        document = encode_document(KeySetDocument(keys=[generated.entry]))
        if output_dir is None:
            return "\n".join(
                ["# JWKS", document, "", "# PEM Private Key Base64", std_b64e(generated.private_bytes)]
            )
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        (output_dir / DOCUMENT_NAME).write_text(document, encoding="utf-8")
        pem = EcKeyPair.from_pkcs8(generated.private_bytes).private_pem_pkcs8()
        (output_dir / DETACHED_PRIVATE_KEY_NAME).write_bytes(pem)
        return None

    def find_key(self, prefix: str, jwks_path: Optional[Path] = None) -> tuple[KeyStore, JsonWebKey]:
        store = self.open_store(jwks_path)
        return store, resolve_kid(store, prefix)

    def remove_keys(self, store: KeyStore, entries: List[JsonWebKey]) -> List[JsonWebKey]:
        return store.remove_keys(entries, context=self.context)

    def export(
        self,
        kid: Optional[str] = None,
        *,
        export_all: bool = False,
        include_private: bool = False,
        output_dir: Optional[Path] = None,
        jwks_path: Optional[Path] = None,
    ) -> ExportOutcome:
        if not kid and not export_all:
            raise InvalidInputError("Key ID (kid) is required unless --all is specified.")
        store = self.open_store(jwks_path)
        if len(store) == 0:
            raise KeyNotFoundError("No keys found.")
        entries = store.keys if export_all else [resolve_kid(store, kid or "")]
        document = export_key_set(entries, store, output_dir, include_private, context=self.context)
        return ExportOutcome(store=store, entries=entries, document=document)

    def issue_token(self, request: TokenRequest, kid: Optional[str] = None, jwks_path: Optional[Path] = None) -> IssuedToken:
        store = self.open_store(jwks_path)
        return issue_token(store, kid, request, self.context.config)


__all__ = ["ExportOutcome", "KeyManager"]
