"""
Helpers for turning byte counts and durations into short readable strings.
"""

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(bytes_size: float) -> str:
    """Formats a byte count, e.g. ``format_size(1536) == '1.5 KB'``."""
    if bytes_size <= 0:
        return "0 B"
    value = float(bytes_size)
    for unit in _SIZE_UNITS[:-1]:
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {_SIZE_UNITS[-1]}"


def format_duration(seconds: float) -> str:
    """Formats seconds as e.g. '1h 02m 05s', dropping leading zero units."""
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"
