from __future__ import annotations

import re

_UNITS = ["B", "KB", "MB", "GB"]
_MULTIPLIERS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3, "TB": 1024**4}
_SIZE_RE = re.compile(r"^(-?[\d.]+)\s*([KMGT]?B)$", re.IGNORECASE)


def format_bytes(num: float) -> str:
    """
    Human readable size, base 1024, at most two decimals.

      0     -> "0 B"
      1536  -> "1.5 KB"
      2**20 -> "1 MB"
    """
    if num == 0:
        return "0 B"
    if num < 0:
        return "-" + format_bytes(-num)

    i = 0
    while num >= 1024 ** (i + 1) and i < len(_UNITS) - 1:
        i += 1
    value = round(num / (1024**i), 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_UNITS[i]}"


def parse_bytes(text: str) -> float:
    """Inverse of format_bytes(). Returns 0 for anything it can't read."""
    if not text or not isinstance(text, str):
        return 0
    m = _SIZE_RE.match(text.strip())
    if not m:
        return 0
    try:
        value = float(m.group(1))
    except ValueError:
        return 0
    return value * _MULTIPLIERS[m.group(2).upper()]
