"""Local JWKS signing-key authority."""
from .exceptions import JwksError
from .store import KeyStore
from .version import __version__

__all__ = ["JwksError", "KeyStore", "__version__"]
