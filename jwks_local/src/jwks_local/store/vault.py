"""Private key files kept beside the key set document."""
from __future__ import annotations

from pathlib import Path

import structlog

from ..crypto.keys import EcKeyPair
from ..exceptions import MissingPrivateKeyError

logger = structlog.get_logger(__name__)

# Filenames are capped to stay under filesystem name limits.
MAX_FILENAME_LENGTH = 32
KEY_SUFFIX = ".key"


class PrivateKeyVault:
    """Map key identifiers to ``<kid[:32]>.key`` PEM files in ``root``.

    Bytes crossing this boundary are PKCS#8 DER; on disk they are PEM armored
    with the ``PRIVATE KEY`` label.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    @staticmethod
    def filename_for(kid: str) -> str:
        return kid[:MAX_FILENAME_LENGTH] + KEY_SUFFIX

    def path_for(self, kid: str) -> Path:
        return self.root / self.filename_for(kid)

    def exists(self, kid: str) -> bool:
        return self.path_for(kid).is_file()

    def write(self, kid: str, private_bytes: bytes) -> Path:
        pem = EcKeyPair.from_pkcs8(private_bytes).private_pem_pkcs8()
        path = self.path_for(kid)
        path.write_bytes(pem)
        return path

    def read(self, kid: str) -> bytes:
        path = self.path_for(kid)
        if not path.is_file():
            raise MissingPrivateKeyError(kid, path)
        return EcKeyPair.from_pem(path.read_bytes()).private_pkcs8()

    def delete(self, kid: str) -> bool:
        path = self.path_for(kid)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("private_key_missing", kid=kid, path=str(path))
            return False
        return True

    def wipe(self) -> int:
        removed = 0
        for path in self.root.glob("*" + KEY_SUFFIX):
            if path.is_file():
                path.unlink()
                removed += 1
        return removed


__all__ = ["KEY_SUFFIX", "MAX_FILENAME_LENGTH", "PrivateKeyVault"]
