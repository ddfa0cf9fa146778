"""Human readable formatting helpers"""

BYTE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(num_bytes: int) -> str:
    """Format a byte count using 1024-based units.

    Plain bytes are shown as an integer, larger units with two decimals:
    ``512 -> "512 B"``, ``1536 -> "1.50 KB"``.
    """
    value = float(num_bytes)
    unit_index = 0

    while value >= 1024.0 and unit_index < len(BYTE_UNITS) - 1:
        value /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{num_bytes} {BYTE_UNITS[0]}"
    return f"{value:.2f} {BYTE_UNITS[unit_index]}"
