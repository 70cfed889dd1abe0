
import base64


def b64e(data: bytes) -> str:
    """URL-safe base64 encode without padding"""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def b64d(value: str) -> bytes:
    """URL-safe base64 decode that tolerates missing padding"""
    pad = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode((value + pad).encode("ascii"))


def std_b64e(data: bytes) -> str:
    """Standard (padded) base64, used for PKCS#8 bundles"""
    return base64.b64encode(data).decode("ascii")
