"""Shared filesystem path helpers for jwks-local."""
from __future__ import annotations

import os
import sys
from pathlib import Path

from platformdirs import PlatformDirs

_APP_NAME = "jwks-local"
_STORE_ENV = "JWKS_HOME"

DOCUMENT_NAME = "jwks.json"
STORE_DIR_NAME = ".jwks"


def runtime_config_dir() -> Path:
    """Return the per-user runtime configuration directory."""
    if sys.platform in ("win32", "darwin"):
        dirs = PlatformDirs(appname=_APP_NAME, appauthor=None, roaming=True)
    else:
        dirs = PlatformDirs(appname=_APP_NAME, appauthor=None, roaming=False)
    return Path(dirs.user_config_path)


def default_store_dir() -> Path:
    """Return the per-user default store directory (``~/.jwks``)."""
    value = os.getenv(_STORE_ENV)
    if value:
        return Path(value).expanduser()
    return Path.home() / STORE_DIR_NAME


def shrink_home_path(path: Path | str) -> str:
    """Render ``path`` with the home directory replaced by ``~``."""
    text = str(path)
    home = str(Path.home()).rstrip("/\\")
    if home and text.lower().startswith(home.lower()):
        return "~" + text[len(home):]
    return text


__all__ = [
    "DOCUMENT_NAME",
    "STORE_DIR_NAME",
    "default_store_dir",
    "runtime_config_dir",
    "shrink_home_path",
]
