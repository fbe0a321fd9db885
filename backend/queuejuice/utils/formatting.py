"""Human-readable labels for the queue view."""

import math

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(num_bytes: float) -> str:
    """Format a byte count with binary prefixes, e.g. ``1.5 KB``.

    Non-finite or non-positive input renders as ``0 B``. Values of ten or more
    (and plain bytes) drop the decimal.
    """
    if not math.isfinite(num_bytes) or num_bytes <= 0:
        return "0 B"
    index = 0
    while index < len(SIZE_UNITS) - 1 and num_bytes >= 1024 ** (index + 1):
        index += 1
    value = num_bytes / 1024 ** index
    decimals = 0 if value >= 10 or index == 0 else 1
    return f"{value:.{decimals}f} {SIZE_UNITS[index]}"
