"""Key store package exports."""
from .codec import decode_document, encode_document
from .keystore import KeyStore
from .paths import StoreLocator
from .vault import PrivateKeyVault

__all__ = ["KeyStore", "PrivateKeyVault", "StoreLocator", "decode_document", "encode_document"]
