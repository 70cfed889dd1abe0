"""Canonical JSON encoding of the key set document."""
from __future__ import annotations

import json

from pydantic import ValidationError

from ..exceptions import InvalidDocumentError
from ..models import KeySetDocument


def encode_document(document: KeySetDocument) -> str:
    payload = document.model_dump(mode="json", exclude_none=True)
    return json.dumps(payload, indent=2, ensure_ascii=False)


def decode_document(data: str | bytes) -> KeySetDocument:
    try:
        raw = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidDocumentError(f"Key set document is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise InvalidDocumentError("Key set document must be a JSON object")
    try:
        document = KeySetDocument.model_validate(raw)
    except ValidationError as exc:
        raise InvalidDocumentError(f"Invalid key set document: {exc}") from exc

    seen: set[str] = set()
    for key in document.keys:
        if key.kid in seen:
            raise InvalidDocumentError(f"Duplicate key ID in key set document: {key.kid}")
        seen.add(key.kid)
    return document


__all__ = ["decode_document", "encode_document"]
