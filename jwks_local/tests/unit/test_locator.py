from pathlib import Path

from jwks_local.paths import default_store_dir, shrink_home_path
from jwks_local.store.paths import StoreLocator


def _touch_document(directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "jwks.json").write_text('{"keys": []}', encoding="utf-8")
    return directory


def test_default_dir_follows_environment(tmp_path: Path) -> None:
    assert default_store_dir() == tmp_path / "home" / ".jwks"


def test_working_directory_store_wins_over_default(tmp_path: Path) -> None:
    default = _touch_document(tmp_path / "default")
    local = _touch_document(tmp_path / "cwd" / ".jwks")
    locator = StoreLocator(default_dir=default, cwd=tmp_path / "cwd")

    assert locator.find_root() == local


def test_falls_back_to_default_dir(tmp_path: Path) -> None:
    default = _touch_document(tmp_path / "default")
    locator = StoreLocator(default_dir=default, cwd=tmp_path / "cwd")

    assert locator.find_root() == default


def test_explicit_path_is_exclusive(tmp_path: Path) -> None:
    default = _touch_document(tmp_path / "default")
    locator = StoreLocator(default_dir=default, cwd=tmp_path)

    assert locator.find_root(tmp_path / "elsewhere") is None


def test_explicit_path_checks_hidden_dir_first(tmp_path: Path) -> None:
    base = _touch_document(tmp_path / "project")
    hidden = _touch_document(base / ".jwks")
    locator = StoreLocator(default_dir=tmp_path / "default", cwd=tmp_path)

    assert locator.candidates(base) == [hidden / "jwks.json", base / "jwks.json"]
    assert locator.find_root(base) == hidden
    (hidden / "jwks.json").unlink()
    assert locator.find_root(base) == base


def test_init_target(tmp_path: Path) -> None:
    locator = StoreLocator(default_dir=tmp_path / "default", cwd=tmp_path)
    assert locator.init_target() == tmp_path / "default"
    assert locator.init_target(tmp_path / "project") == tmp_path / "project" / ".jwks"


def test_shrink_home_path(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
    assert shrink_home_path(tmp_path / ".jwks") == str(Path("~") / ".jwks")
    assert shrink_home_path("/srv/keys") == "/srv/keys"
