from __future__ import annotations

from pathlib import Path

import pytest

from jwks_local.crypto.keys import generate_key
from jwks_local.store.keystore import KeyStore


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep the per-user default store and the working directory inside tmp_path."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("JWKS_HOME", str(home / ".jwks"))
    monkeypatch.setattr("jwks_local.config.runtime_config_dir", lambda: tmp_path / "config")
    monkeypatch.chdir(work)
    return home


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    return tmp_path / "project" / ".jwks"


@pytest.fixture
def store(store_dir: Path) -> KeyStore:
    return KeyStore.initialize(store_dir)


@pytest.fixture
def populated_store(store: KeyStore) -> KeyStore:
    generated = generate_key("primary")
    store.add_key(generated.entry, generated.private_bytes)
    return store
