"""JWT issuance with keys from the local store."""
from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import jwt
import structlog

from ..config import AppConfig, DEFAULT_CONFIG
from ..crypto.keys import EcKeyPair
from ..exceptions import InvalidClaimError
from ..models import SUPPORTED_ALG
from ..store.keystore import KeyStore
from ..utils.b64 import b64e
from ..utils.duration import parse_duration_or_default
from .resolver import resolve_signing_key

logger = structlog.get_logger(__name__)

RESERVED_CLAIMS = frozenset({"jti", "iat", "exp", "iss"})
JTI_BYTES = 16


@dataclass(slots=True)
class TokenRequest:
    audience: Optional[str] = None
    subject: Optional[str] = None
    claims: Sequence[str] = ()
    ttl: Optional[str] = None


@dataclass(slots=True)
class IssuedToken:
    token: str
    kid: str
    issued_at: int
    expires_at: int
    warnings: List[str] = field(default_factory=list)

    @property
    def expires(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)


def parse_claims(claims: Sequence[str]) -> List[Tuple[str, str]]:
    """Split ``type=value`` strings, rejecting malformed and reserved types."""
    parsed: List[Tuple[str, str]] = []
    for claim in claims:
        claim_type, sep, value = claim.partition("=")
        if not sep or not claim_type:
            raise InvalidClaimError(f"Invalid claim format: {claim}. Expected 'type=value'.")
        if claim_type in RESERVED_CLAIMS:
            raise InvalidClaimError(f"Claim '{claim_type}' is set by the issuer and cannot be overridden.")
        parsed.append((claim_type, value))
    return parsed


def _merge_claim(payload: Dict[str, Any], claim_type: str, value: str) -> None:
    # Repeated claim types become arrays.
    if claim_type not in payload:
        payload[claim_type] = value
        return
    current = payload[claim_type]
    if isinstance(current, list):
        current.append(value)
    else:
        payload[claim_type] = [current, value]


class TokenIssuer:
    """Sign ES256 tokens with private keys read back from the store."""

    def __init__(self, store: KeyStore, config: Optional[AppConfig] = None) -> None:
        self.store = store
        self.config = config or DEFAULT_CONFIG

    def signing_credentials(self, kid: str) -> EcKeyPair:
        """Rebuild the key pair for ``kid`` from its private key file.

        Raises MissingPrivateKeyError when the file is absent and
        InvalidKeyMaterialError when it does not hold a P-256 key.
        """
        return EcKeyPair.from_pkcs8(self.store.export_private_key(kid))

    def issue(self, kid: str, request: TokenRequest, *, now: Optional[float] = None) -> IssuedToken:
        custom = parse_claims(request.claims)
        custom_types = {claim_type for claim_type, _ in custom}

        warnings: List[str] = []
        if not request.audience and "aud" not in custom_types:
            warnings.append("No audience specified.")
        if not request.subject and "sub" not in custom_types:
            warnings.append("No subject specified.")

        ttl, valid = parse_duration_or_default(request.ttl, self.config.token.default_ttl())
        if request.ttl and not valid:
            logger.warning("ttl_fallback", ttl=request.ttl, default_seconds=int(ttl.total_seconds()))

        pair = self.signing_credentials(kid)
        # The header kid comes from the key itself, not from the file name.
        header_kid = pair.kid

        issued_at = int(now if now is not None else time.time())
        expires_at = issued_at + int(ttl / timedelta(seconds=1))
        payload: Dict[str, Any] = {
            "iss": self.config.token.issuer,
            "jti": b64e(secrets.token_bytes(JTI_BYTES)),
            "iat": issued_at,
        }
        if request.audience:
            payload["aud"] = request.audience
        if request.subject:
            payload["sub"] = request.subject
        for claim_type, value in custom:
            _merge_claim(payload, claim_type, value)
        payload["exp"] = expires_at

        token = jwt.encode(
            payload,
            pair.private_key,
            algorithm=SUPPORTED_ALG,
            headers={"kid": header_kid},
        )
        for warning in warnings:
            logger.warning("token_claim_missing", detail=warning, kid=header_kid)
        logger.info("token_issued", kid=header_kid, exp=expires_at)
        return IssuedToken(
            token=token,
            kid=header_kid,
            issued_at=issued_at,
            expires_at=expires_at,
            warnings=warnings,
        )


def issue_token(
    store: KeyStore,
    kid_prefix: Optional[str],
    request: TokenRequest,
    config: Optional[AppConfig] = None,
) -> IssuedToken:
    """Resolve the signing key by prefix and issue a token with it."""
    parse_claims(request.claims)
    entry = resolve_signing_key(store, kid_prefix)
    return TokenIssuer(store, config).issue(entry.kid, request)


__all__ = [
    "IssuedToken",
    "RESERVED_CLAIMS",
    "TokenIssuer",
    "TokenRequest",
    "issue_token",
    "parse_claims",
]
