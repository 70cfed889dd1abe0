# Locate the store directory holding jwks.json.
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from ..paths import DOCUMENT_NAME, STORE_DIR_NAME, default_store_dir


class StoreLocator:
    """Compute candidate document paths for an optional explicit location.

    An explicit path is exclusive: ``<explicit>/.jwks/jwks.json`` and
    ``<explicit>/jwks.json`` are the only candidates. Without one the working
    directory's ``.jwks/jwks.json`` is tried before the per-user default.
    """

    def __init__(self, default_dir: Optional[Path] = None, cwd: Optional[Path] = None) -> None:
        self.default_dir = Path(default_dir) if default_dir else default_store_dir()
        self._cwd = Path(cwd) if cwd else None

    @property
    def cwd(self) -> Path:
        return self._cwd or Path.cwd()

    def candidates(self, explicit: Optional[Path | str] = None) -> List[Path]:
        if explicit:
            base = Path(explicit).expanduser()
            return [base / STORE_DIR_NAME / DOCUMENT_NAME, base / DOCUMENT_NAME]
        return [self.cwd / STORE_DIR_NAME / DOCUMENT_NAME, self.default_dir / DOCUMENT_NAME]

    def find_root(self, explicit: Optional[Path | str] = None) -> Optional[Path]:
        for candidate in self.candidates(explicit):
            if candidate.is_file():
                return candidate.parent
        return None

    def init_target(self, explicit: Optional[Path | str] = None) -> Path:
        if explicit:
            return Path(explicit).expanduser() / STORE_DIR_NAME
        return self.default_dir


__all__ = ["StoreLocator"]
