"""Parsing of number-plus-unit duration strings such as ``60s`` or ``1h30m``."""
from __future__ import annotations

import re
from datetime import timedelta

__all__ = ["parse_duration"]

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # micro sign
    "μs": 1e-6,  # Greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

# Longest units first so "ms" is not read as "m" followed by "s"
_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|h|m|s)")


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration made of one or more ``<number><unit>`` groups.

    Units are ``ns``, ``us`` (or ``µs``, ``μs``), ``ms``, ``s``, ``m`` and ``h``.
    A bare ``0`` is accepted.

    Raises:
        ValueError: If text is not a valid duration
    """
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError("invalid duration: empty string")

    seconds = 0.0
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        if match is None:
            raise ValueError(f"invalid duration: {text!r}")
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        raise ValueError(f"invalid duration: {text!r}") from None
