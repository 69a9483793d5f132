"""
Human-readable sizes and durations.
"""

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(bytes_size: float) -> str:
    """1536 -> '1.5 KB'. Non-positive sizes render as '0 B'."""
    if bytes_size <= 0:
        return "0 B"
    value = float(bytes_size)
    for unit in _SIZE_UNITS[:-1]:
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {_SIZE_UNITS[-1]}"


def format_duration(seconds: float) -> str:
    """3725 -> '1h 2m 5s'. Zero-valued leading units are left out."""
    total = int(seconds)
    units = (("h", total // 3600), ("m", total % 3600 // 60), ("s", total % 60))
    parts = [f"{value}{name}" for name, value in units if value]
    return " ".join(parts) or "0s"
