"""Human-readable byte sizes."""

from __future__ import annotations

_UNITS = ("bytes", "kB", "MB", "GB", "TB")


def format_bytes(size: int) -> str:
    """Format a byte count with binary multiples, one decimal above plain bytes."""
    if isinstance(size, bool) or not isinstance(size, int) or not 0 <= size < 1 << 64:
        raise ValueError(f"byte count must be an unsigned 64-bit integer, got {size!r}")
    value = float(size)
    unit = _UNITS[0]
    for next_unit in _UNITS[1:]:
        if value < 1024.0:
            break
        value /= 1024.0
        unit = next_unit
    if unit == _UNITS[0]:
        return f"{int(value)} {unit}"
    return f"{value:.1f} {unit}"