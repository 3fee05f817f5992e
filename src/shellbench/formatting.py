"""Shared text formatting helpers for shellbench.

Provides time formatting with a consistent unit across a set of values,
and a simple aligned text table used by the ``show`` command.
"""

from __future__ import annotations

import math
from typing import Iterable

_UNIT_FACTORS: dict[str, float] = {"s": 1.0, "ms": 1000.0}


def choose_unit(values: Iterable[float], unit: str | None = None) -> str:
    """Pick the display unit for a group of values.

    An explicit *unit* wins.  Otherwise milliseconds are used when every
    value is below one second.
    """
    if unit is not None:
        if unit not in _UNIT_FACTORS:
            raise ValueError(f"Unknown time unit: {unit!r}")
        return unit
    finite = [v for v in values if not math.isnan(v)]
    if finite and max(finite) < 1.0:
        return "ms"
    return "s"


def convert(seconds: float, unit: str) -> float:
    """Convert *seconds* to *unit*."""
    return seconds * _UNIT_FACTORS[unit]


def format_time(seconds: float, unit: str | None = None, precision: int = 1) -> str:
    """Format a time value such as ``'102.3 ms'`` or ``'1.204 s'``.

    Seconds get three decimals, milliseconds *precision* decimals.
    """
    if math.isnan(seconds):
        return "N/A"
    unit = choose_unit([seconds], unit)
    digits = 3 if unit == "s" else precision
    return f"{convert(seconds, unit):.{digits}f} {unit}"


def format_number(seconds: float, unit: str, precision: int = 1) -> str:
    """Format a value in *unit* without the unit suffix (for tables)."""
    digits = 3 if unit == "s" else precision
    return f"{convert(seconds, unit):.{digits}f}"


def format_table(
    headers: list[str],
    rows: list[list[str]],
    *,
    alignments: list[str] | None = None,
    indent: int = 2,
) -> str:
    """Format rows as an aligned text table.

    Column widths come from the content.  *alignments* holds ``'l'`` or
    ``'r'`` per column (default left).
    """
    if not headers:
        return ""

    ncols = len(headers)
    aligns = list(alignments or [])
    aligns += ["l"] * (ncols - len(aligns))

    padded_rows = [(list(row) + [""] * ncols)[:ncols] for row in rows]
    widths = [len(h) for h in headers]
    for row in padded_rows:
        for ci, cell in enumerate(row):
            widths[ci] = max(widths[ci], len(cell))

    def _cell(text: str, ci: int) -> str:
        return text.rjust(widths[ci]) if aligns[ci] == "r" else text.ljust(widths[ci])

    prefix = " " * indent
    lines = [prefix + "  ".join(_cell(h, ci) for ci, h in enumerate(headers)).rstrip()]
    lines.append(prefix + "  ".join("-" * w for w in widths))
    for row in padded_rows:
        lines.append(prefix + "  ".join(_cell(c, ci) for ci, c in enumerate(row)).rstrip())
    return "\n".join(lines)


def truncate(text: str, max_len: int, suffix: str = "...") -> str:
    """Truncate text to *max_len*, adding *suffix* if truncated."""
    if len(text) <= max_len:
        return text
    if max_len <= len(suffix):
        return suffix[:max_len]
    return text[: max_len - len(suffix)] + suffix
