
from __future__ import annotations

from .b64 import b64d, b64e, std_b64e
from .duration import parse_duration, parse_duration_or_default

__all__ = [
    "b64d",
    "b64e",
    "std_b64e",
    "parse_duration",
    "parse_duration_or_default",
]
