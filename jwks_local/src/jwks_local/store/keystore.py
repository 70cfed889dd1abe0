from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

import structlog

from ..context import OperationContext
from ..crypto.keys import load_signing_key
from ..exceptions import (
    DuplicateKeyError,
    KeyCollisionError,
    KeyNotFoundError,
    NotInitializedError,
)
from ..models import JsonWebKey, KeySetDocument
from ..paths import DOCUMENT_NAME, shrink_home_path
from .codec import decode_document, encode_document
from .paths import StoreLocator
from .vault import PrivateKeyVault

logger = structlog.get_logger(__name__)


class KeyStore:
    """Filesystem-backed key set rooted at ``root``.

    Layout:
      - jwks.json: public key set {"keys": [...]}
      - <kid[:32]>.key: PKCS#8 PEM private key per generated key

    Entries are held in an insertion-ordered mapping keyed by kid, and every
    mutation rewrites the whole document. An add writes the private key file
    before the document; a removal deletes the file before the document. A
    crash between the two steps leaves either an orphan private key file or a
    document entry whose file is gone (MissingPrivateKeyError on export).
    Neither state is repaired automatically.
    """

    def __init__(self, root: Path | str, document: Optional[KeySetDocument] = None) -> None:
        self.root = Path(root)
        self.document_path = self.root / DOCUMENT_NAME
        self.vault = PrivateKeyVault(self.root)
        document = document or KeySetDocument()
        self._keys: Dict[str, JsonWebKey] = {key.kid: key for key in document.keys}
        self._extra = dict(document.model_extra or {})

    # ----- Construction -----
    @classmethod
    def load(cls, root: Path | str) -> "KeyStore":
        """Load ``root/jwks.json``; a missing file is an empty store."""
        path = Path(root) / DOCUMENT_NAME
        if path.is_file():
            return cls(root, decode_document(path.read_bytes()))
        return cls(root)

    @classmethod
    def open(cls, explicit: Optional[Path | str] = None, locator: Optional[StoreLocator] = None) -> "KeyStore":
        """Resolve the store directory and load it, or raise NotInitializedError."""
        root = (locator or StoreLocator()).find_root(explicit)
        if root is None or not (root / DOCUMENT_NAME).is_file():
            raise NotInitializedError()
        return cls.load(root)

    @classmethod
    def initialize(cls, root: Path | str) -> "KeyStore":
        """Create ``root`` and reset it to an empty key set with no private keys."""
        store = cls(root)
        store.root.mkdir(parents=True, exist_ok=True)
        store.document_path.unlink(missing_ok=True)
        wiped = store.vault.wipe()
        store.commit()
        logger.info("store_initialized", path=str(store.root), wiped_private_keys=wiped)
        return store

    # ----- Queries -----
    @property
    def keys(self) -> List[JsonWebKey]:
        return list(self._keys.values())

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[JsonWebKey]:
        return iter(self.keys)

    def __contains__(self, kid: object) -> bool:
        return kid in self._keys

    def get(self, kid: str) -> Optional[JsonWebKey]:
        return self._keys.get(kid)

    def select_keys(self, prefix: str) -> List[JsonWebKey]:
        """Entries whose kid starts with ``prefix`` (ordinal, case-sensitive)."""
        return [key for kid, key in self._keys.items() if kid.startswith(prefix)]

    def document(self) -> KeySetDocument:
        return KeySetDocument(keys=self.keys, **self._extra)

    # ----- Mutations -----
    def add_key(self, entry: JsonWebKey, private_bytes: Optional[bytes] = None) -> JsonWebKey:
        """Write the private key (if any), insert ``entry`` and commit.

        ``private_bytes`` is PKCS#8 DER. Entries added without it are
        public-only imports and get no private key file.
        """
        entry = entry.public()
        if entry.kid in self:
            raise DuplicateKeyError(f"Key {entry.kid} is already in the key set")
        filename = self.vault.filename_for(entry.kid)
        for existing in self._keys:
            if self.vault.filename_for(existing) == filename:
                raise KeyCollisionError(
                    f"Key {entry.kid} would share private key file {filename} with key {existing}"
                )

        if private_bytes is not None:
            self.vault.write(entry.kid, private_bytes)
        self._keys[entry.kid] = entry
        try:
            self.commit()
        except OSError:
            del self._keys[entry.kid]
            raise
        logger.info("key_added", kid=entry.kid, private=private_bytes is not None)
        return entry

    def remove_keys(self, entries: Iterable[JsonWebKey | str], context: Optional[OperationContext] = None) -> List[JsonWebKey]:
        """Remove entries by kid and delete their private key files.

        Entries are matched by kid, so entries read from another load of the
        same document work. Missing private key files are skipped. The
        document is committed once, after the batch; a cancelled batch commits
        the removals made before cancellation.
        """
        kids = [item if isinstance(item, str) else item.kid for item in entries]
        for kid in kids:
            if kid not in self:
                raise KeyNotFoundError(f"Key {kid} not found in the key set")

        removed: List[JsonWebKey] = []
        try:
            for kid in kids:
                if context is not None:
                    context.check_cancelled()
                if kid not in self:
                    continue
                removed.append(self._keys.pop(kid))
                self.vault.delete(kid)
        finally:
            if removed:
                self.commit()
                logger.info("keys_removed", kids=[key.kid for key in removed])
        return removed

    def export_private_key(self, key: JsonWebKey | str) -> bytes:
        """Return PKCS#8 DER for ``key`` after validating it as a P-256 key."""
        kid = key if isinstance(key, str) else key.kid
        return load_signing_key(self.vault.read(kid)).private_pkcs8()

    def commit(self) -> None:
        self.document_path.write_text(encode_document(self.document()), encoding="utf-8")

    # ----- Presentation -----
    @property
    def display_path(self) -> str:
        return shrink_home_path(self.root)

    def __str__(self) -> str:
        return self.display_path


__all__ = ["KeyStore"]
