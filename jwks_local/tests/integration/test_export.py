import base64
import json
from pathlib import Path

import pytest

from jwks_local.context import OperationContext
from jwks_local.crypto.keys import EcKeyPair, generate_key
from jwks_local.exceptions import (
    AlreadyInitializedError,
    InvalidInputError,
    KeyNotFoundError,
    MissingPrivateKeyError,
    NotInitializedError,
    OperationCancelledError,
)
from jwks_local.services.exporter import export_filename, export_key_set
from jwks_local.services.key_manager import KeyManager
from jwks_local.store.keystore import KeyStore


@pytest.fixture
def manager() -> KeyManager:
    return KeyManager()


def _add(store: KeyStore, name: str | None = None) -> str:
    generated = generate_key(name)
    store.add_key(generated.entry, generated.private_bytes)
    return generated.entry.kid


def test_public_export_omits_private_material(populated_store: KeyStore) -> None:
    text = export_key_set(populated_store.keys, populated_store)
    document = json.loads(text)
    assert set(document) == {"keys"}
    assert document["keys"][0]["kid"] == populated_store.keys[0].kid
    assert document["keys"][0]["name"] == "primary"
    assert "d" not in document["keys"][0]


def test_private_export_to_text(populated_store: KeyStore) -> None:
    kid = populated_store.keys[0].kid
    document = json.loads(export_key_set(populated_store.keys, populated_store, include_private=True))

    assert [item["kid"] for item in document["private_keys"]] == [kid]
    der = base64.b64decode(document["private_keys"][0]["pkcs8"])
    assert EcKeyPair.from_pkcs8(der).kid == kid


def test_private_export_to_directory(populated_store: KeyStore, tmp_path: Path) -> None:
    kid = populated_store.keys[0].kid
    out = tmp_path / "out"

    assert export_key_set(populated_store.keys, populated_store, out, include_private=True) is None

    assert export_filename(kid) == f"jwk_{kid[:16]}.pem"
    pem = (out / export_filename(kid)).read_bytes()
    assert EcKeyPair.from_pem(pem).kid == kid
    document = json.loads((out / "jwks.json").read_text())
    assert "private_keys" not in document
    assert [key["kid"] for key in document["keys"]] == [kid]


def test_private_export_fails_on_missing_file(populated_store: KeyStore, store_dir: Path) -> None:
    for path in store_dir.glob("*.key"):
        path.unlink()
    with pytest.raises(MissingPrivateKeyError, match="Private key file not found"):
        export_key_set(populated_store.keys, populated_store, include_private=True)


def test_cancelled_export(populated_store: KeyStore) -> None:
    context = OperationContext()
    context.cancel()
    with pytest.raises(OperationCancelledError):
        export_key_set(populated_store.keys, populated_store, include_private=True, context=context)


def test_manager_init_refuses_existing_store(manager: KeyManager, tmp_path: Path) -> None:
    project = tmp_path / "project"
    store = manager.init_store(project)
    _add(store)

    with pytest.raises(AlreadyInitializedError):
        manager.init_store(project)

    forced = manager.init_store(project, force=True)
    assert forced.root == project / ".jwks"
    assert len(KeyStore.load(forced.root)) == 0


def test_manager_init_defaults_to_home_store(manager: KeyManager, tmp_path: Path) -> None:
    store = manager.init_store()
    assert store.root == tmp_path / "home" / ".jwks"
    assert manager.open_store().root == store.root


def test_manager_requires_initialized_store(manager: KeyManager, tmp_path: Path) -> None:
    with pytest.raises(NotInitializedError):
        manager.open_store(tmp_path / "nothing")
    with pytest.raises(NotInitializedError):
        manager.store_root(tmp_path / "nothing")


def test_manager_export_by_prefix_and_all(manager: KeyManager, tmp_path: Path) -> None:
    project = tmp_path / "project"
    store = manager.init_store(project)
    first = _add(store, "one")
    second = _add(store, "two")

    single = manager.export(first[:10], jwks_path=project)
    assert [key["kid"] for key in json.loads(single.document)["keys"]] == [first]

    everything = manager.export(export_all=True, jwks_path=project)
    assert [key["kid"] for key in json.loads(everything.document)["keys"]] == [first, second]


def test_manager_export_errors(manager: KeyManager, tmp_path: Path) -> None:
    project = tmp_path / "project"
    manager.init_store(project)

    with pytest.raises(InvalidInputError):
        manager.export(jwks_path=project)
    with pytest.raises(KeyNotFoundError, match="No keys found."):
        manager.export(export_all=True, jwks_path=project)


def test_detached_keygen_to_text(manager: KeyManager) -> None:
    generated = manager.generate_detached("ephemeral")
    text = manager.export_detached(generated)

    header, rest = text.split("\n", 1)
    assert header == "# JWKS"
    document, b64 = rest.split("\n\n# PEM Private Key Base64\n")
    assert json.loads(document)["keys"][0]["kid"] == generated.entry.kid
    assert EcKeyPair.from_pkcs8(base64.b64decode(b64)).kid == generated.entry.kid


def test_detached_keygen_to_directory(manager: KeyManager, tmp_path: Path) -> None:
    generated = manager.generate_detached()
    out = tmp_path / "detached"

    assert manager.export_detached(generated, out) is None

    assert json.loads((out / "jwks.json").read_text())["keys"][0]["kid"] == generated.entry.kid
    assert EcKeyPair.from_pem((out / "private_key.pem").read_bytes()).kid == generated.entry.kid
