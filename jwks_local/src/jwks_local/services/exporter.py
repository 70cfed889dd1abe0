# Export public key sets, optionally with private key material.
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Protocol, Sequence

import structlog

from ..context import OperationContext
from ..crypto.keys import EcKeyPair
from ..models import JsonWebKey, KeySetDocument, PrivateKeyExport
from ..paths import DOCUMENT_NAME
from ..store.codec import encode_document
from ..utils.b64 import std_b64e

logger = structlog.get_logger(__name__)

PRIVATE_KEYS_MEMBER = "private_keys"
EXPORT_PREFIX_LENGTH = 16


class PrivateKeySource(Protocol):
    def export_private_key(self, key: str) -> bytes:
        ...


def export_filename(kid: str) -> str:
    return f"jwk_{kid[:EXPORT_PREFIX_LENGTH]}.pem"


def export_key_set(
    entries: Sequence[JsonWebKey],
    private_source: PrivateKeySource,
    output_dir: Optional[Path] = None,
    include_private: bool = False,
    context: Optional[OperationContext] = None,
) -> Optional[str]:
    """Export ``entries`` as a key set document.

    Without ``output_dir`` the document is returned as JSON text; private keys,
    when requested, are attached as a ``private_keys`` member holding
    ``{"kid", "pkcs8"}`` pairs. With ``output_dir`` the document is written as
    ``jwks.json`` and each private key as ``jwk_<kid[:16]>.pem`` beside it, and
    ``None`` is returned.
    """
    if output_dir is not None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

    bundled: List[PrivateKeyExport] = []
    if include_private:
        for entry in entries:
            if context is not None:
                context.check_cancelled()
            private_bytes = private_source.export_private_key(entry.kid)
            if output_dir is not None:
                pem = EcKeyPair.from_pkcs8(private_bytes).private_pem_pkcs8()
                (output_dir / export_filename(entry.kid)).write_bytes(pem)
            else:
                bundled.append(PrivateKeyExport(kid=entry.kid, pkcs8=std_b64e(private_bytes)))

    extra = {PRIVATE_KEYS_MEMBER: [item.model_dump() for item in bundled]} if bundled else {}
    document = KeySetDocument(keys=[entry.public() for entry in entries], **extra)
    text = encode_document(document)

    logger.info(
        "key_set_exported",
        kids=[entry.kid for entry in entries],
        private=include_private,
        output=str(output_dir) if output_dir else "stdout",
    )
    if output_dir is not None:
        (output_dir / DOCUMENT_NAME).write_text(text, encoding="utf-8")
        return None
    return text


__all__ = [
    "EXPORT_PREFIX_LENGTH",
    "PRIVATE_KEYS_MEMBER",
    "PrivateKeySource",
    "export_filename",
    "export_key_set",
]
