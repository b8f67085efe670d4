"""Small formatting helpers shared by user-facing messages."""

from typing import Optional

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def format_file_size(size: Optional[int]) -> str:
    """Format a byte count for display, e.g. ``1536 -> '1.5 KB'``."""
    if not size or size <= 0:
        return "0 Bytes"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    value = round(value, 2)
    return f"{value:g} {_SIZE_UNITS[index]}"
