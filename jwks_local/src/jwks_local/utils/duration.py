"""Lenient duration strings for token lifetimes."""
from __future__ import annotations

import re
from datetime import timedelta
from typing import Optional, Tuple

_UNITS: Tuple[Tuple[str, timedelta], ...] = (
    ("d", timedelta(days=1)),
    ("h", timedelta(hours=1)),
    ("m", timedelta(minutes=1)),
    ("s", timedelta(seconds=1)),
)
_PATTERNS = {unit: re.compile(rf"(\d+){unit}") for unit, _ in _UNITS}
_BARE_SECONDS = re.compile(r"^\s*[+-]?\d+\s*$")

# Longest accepted lifetime; exp must stay a representable date.
MAX_DURATION = timedelta(days=36500)


def parse_duration(value: Optional[str]) -> Optional[timedelta]:
    """Parse ``90``, ``15m``, ``1h30m`` or ``2d3h`` into a timedelta.

    A bare integer is a number of seconds. Otherwise every unit letter that
    occurs in ``value`` contributes its first ``<digits><unit>`` match and the
    contributions are summed. Returns ``None`` when no unit letter occurs or a
    unit letter has no digits in front of it, and when the value does not fit
    in a timedelta.
    """
    if value is None:
        return None
    try:
        if _BARE_SECONDS.match(value):
            return timedelta(seconds=int(value))

        total: Optional[timedelta] = None
        for unit, size in _UNITS:
            if unit not in value:
                continue
            match = _PATTERNS[unit].search(value)
            if match is None:
                return None
            part = size * int(match.group(1))
            total = part if total is None else total + part
    except (OverflowError, ValueError):
        return None
    return total


def parse_duration_or_default(value: Optional[str], default: timedelta) -> Tuple[timedelta, bool]:
    """Return ``(duration, True)`` or ``(default, False)``.

    Empty, unparsable, non-positive and over-long (beyond ``MAX_DURATION``)
    values fall back to ``default`` without raising; the flag lets callers
    warn.
    """
    if not value:
        return default, False
    duration = parse_duration(value)
    if duration is None or duration <= timedelta(0) or duration > MAX_DURATION:
        return default, False
    return duration, True


__all__ = ["MAX_DURATION", "parse_duration", "parse_duration_or_default"]
