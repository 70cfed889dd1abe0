import json
from pathlib import Path

import jwt
import pytest

from jwks_local.config import AppConfig, TokenConfig
from jwks_local.crypto.keys import generate_key, public_key_from_entry
from jwks_local.exceptions import (
    AmbiguousKeyError,
    InvalidClaimError,
    MissingPrivateKeyError,
)
from jwks_local.services.token_issuer import TokenIssuer, TokenRequest, issue_token, parse_claims
from jwks_local.store.keystore import KeyStore

AUDIENCE = "api://orders"


def _decode(token: str, store: KeyStore, kid: str, **options) -> dict:
    entry = store.get(kid)
    return jwt.decode(token, public_key_from_entry(entry), algorithms=["ES256"], audience=AUDIENCE, **options)


def test_token_verifies_with_public_entry(populated_store: KeyStore) -> None:
    kid = populated_store.keys[0].kid
    issued = issue_token(populated_store, None, TokenRequest(audience=AUDIENCE, subject="alice"))

    header = jwt.get_unverified_header(issued.token)
    assert header["alg"] == "ES256"
    assert header["kid"] == kid == issued.kid

    claims = _decode(issued.token, populated_store, kid)
    assert claims["iss"] == "https://jwks.local"
    assert claims["sub"] == "alice"
    assert claims["aud"] == AUDIENCE
    assert claims["exp"] - claims["iat"] == 3600
    assert len(claims["jti"]) == 22
    assert issued.warnings == []


def test_token_fails_verification_with_other_key(populated_store: KeyStore) -> None:
    issued = issue_token(populated_store, None, TokenRequest(audience=AUDIENCE))
    stranger = generate_key().entry
    with pytest.raises(jwt.InvalidSignatureError):
        jwt.decode(issued.token, public_key_from_entry(stranger), algorithms=["ES256"], audience=AUDIENCE)


def test_ttl_and_fixed_clock(populated_store: KeyStore) -> None:
    kid = populated_store.keys[0].kid
    issuer = TokenIssuer(populated_store)

    issued = issuer.issue(kid, TokenRequest(audience=AUDIENCE, ttl="15m"), now=1_700_000_000)

    assert issued.issued_at == 1_700_000_000
    assert issued.expires_at == 1_700_000_900
    assert issued.expires.isoformat() == "2023-11-14T22:28:20+00:00"
    payload = jwt.decode(issued.token, options={"verify_signature": False})
    assert list(payload) == ["iss", "jti", "iat", "aud", "exp"]


@pytest.mark.parametrize("ttl", ["soon", "0", "-5", "999999999999d", "3000000d"])
def test_invalid_ttl_falls_back_to_default(populated_store: KeyStore, ttl: str) -> None:
    issued = issue_token(populated_store, None, TokenRequest(audience=AUDIENCE, ttl=ttl))
    assert issued.expires_at - issued.issued_at == 3600
    assert issued.expires.timestamp() == issued.expires_at


def test_longest_ttl_still_has_a_calendar_expiry(populated_store: KeyStore) -> None:
    issued = issue_token(populated_store, None, TokenRequest(audience=AUDIENCE, ttl="36500d"))
    assert issued.expires_at - issued.issued_at == 36500 * 86400
    assert issued.expires.year > 2100


def test_configured_issuer_and_ttl(populated_store: KeyStore) -> None:
    config = AppConfig(token=TokenConfig(issuer="https://issuer.test", default_ttl_seconds=60))
    issued = issue_token(populated_store, None, TokenRequest(audience=AUDIENCE), config)
    claims = jwt.decode(issued.token, options={"verify_signature": False})
    assert claims["iss"] == "https://issuer.test"
    assert claims["exp"] - claims["iat"] == 60


def test_missing_audience_and_subject_warn(populated_store: KeyStore) -> None:
    issued = issue_token(populated_store, None, TokenRequest())
    assert issued.warnings == ["No audience specified.", "No subject specified."]

    via_claims = issue_token(populated_store, None, TokenRequest(claims=["aud=x", "sub=y"]))
    assert via_claims.warnings == []


def test_repeated_claims_become_arrays(populated_store: KeyStore) -> None:
    kid = populated_store.keys[0].kid
    request = TokenRequest(
        audience=AUDIENCE,
        claims=["role=admin", "role=reader", "role=auditor", "tenant=acme", "note=a=b"],
    )
    claims = _decode(issue_token(populated_store, None, request).token, populated_store, kid)
    assert claims["role"] == ["admin", "reader", "auditor"]
    assert claims["tenant"] == "acme"
    assert claims["note"] == "a=b"


def test_audience_option_and_claim_merge(populated_store: KeyStore) -> None:
    request = TokenRequest(audience=AUDIENCE, claims=["aud=api://billing"])
    token = issue_token(populated_store, None, request).token
    claims = jwt.decode(token, options={"verify_signature": False})
    assert claims["aud"] == [AUDIENCE, "api://billing"]


@pytest.mark.parametrize("claim", ["novalue", "=value", "exp=1", "iss=me", "jti=1", "iat=0"])
def test_invalid_claims_rejected(claim: str) -> None:
    with pytest.raises(InvalidClaimError):
        parse_claims([claim])


def test_invalid_claim_rejected_before_key_lookup(store: KeyStore) -> None:
    # An empty store would otherwise raise KeyNotFoundError.
    with pytest.raises(InvalidClaimError):
        issue_token(store, None, TokenRequest(claims=["broken"]))


def test_several_keys_require_kid(populated_store: KeyStore) -> None:
    generated = generate_key()
    populated_store.add_key(generated.entry, generated.private_bytes)

    with pytest.raises(AmbiguousKeyError):
        issue_token(populated_store, None, TokenRequest(audience=AUDIENCE))

    issued = issue_token(populated_store, generated.entry.kid, TokenRequest(audience=AUDIENCE))
    assert issued.kid == generated.entry.kid
    _decode(issued.token, populated_store, generated.entry.kid)


def test_missing_private_key_file(populated_store: KeyStore, store_dir: Path) -> None:
    for path in store_dir.glob("*.key"):
        path.unlink()
    with pytest.raises(MissingPrivateKeyError):
        issue_token(populated_store, None, TokenRequest(audience=AUDIENCE))


def test_header_kid_is_derived_from_key_material(populated_store: KeyStore, store_dir: Path) -> None:
    listed = populated_store.keys[0]
    replacement = generate_key()
    populated_store.vault.write(listed.kid, replacement.private_bytes)

    issued = issue_token(populated_store, None, TokenRequest(audience=AUDIENCE))

    assert jwt.get_unverified_header(issued.token)["kid"] == replacement.entry.kid
    assert json.loads((store_dir / "jwks.json").read_text())["keys"][0]["kid"] == listed.kid
