"""Key set document models."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

SUPPORTED_ALG = "ES256"
SUPPORTED_CRV = "P-256"
KEY_USE = "sig"

_PRIVATE_MEMBERS = {"d"}


class JsonWebKey(BaseModel):
    """Public EC signing key entry of the key set.

    Members other than the declared fields (for example ``name``) are kept as
    pydantic extras and written back unchanged.
    """

    model_config = ConfigDict(extra="allow")

    kty: str = "EC"
    use: Optional[str] = KEY_USE
    alg: Optional[str] = SUPPORTED_ALG
    kid: str
    crv: Optional[str] = SUPPORTED_CRV
    x: Optional[str] = None
    y: Optional[str] = None

    @property
    def extras(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    @property
    def name(self) -> Optional[str]:
        value = self.extras.get("name")
        return value if isinstance(value, str) else None

    def public(self) -> "JsonWebKey":
        """Return a copy without private members."""
        data = self.model_dump(mode="json", exclude_none=True)
        for member in _PRIVATE_MEMBERS:
            data.pop(member, None)
        return JsonWebKey.model_validate(data)


class KeySetDocument(BaseModel):
    """``{"keys": [...]}`` plus any unknown top-level members."""

    model_config = ConfigDict(extra="allow")

    keys: List[JsonWebKey] = Field(default_factory=list)


class PrivateKeyExport(BaseModel):
    kid: str
    pkcs8: str


__all__ = [
    "JsonWebKey",
    "KEY_USE",
    "KeySetDocument",
    "PrivateKeyExport",
    "SUPPORTED_ALG",
    "SUPPORTED_CRV",
]
