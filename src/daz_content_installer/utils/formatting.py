"""Human-readable formatting helpers."""

_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_file_size(size: int) -> str:
    """Format a byte count for display.

    >>> format_file_size(512)
    '512 B'
    >>> format_file_size(2048)
    '2.0 KB'
    >>> format_file_size(5 * 1024**3)
    '5.0 GB'
    """
    value = float(size)
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"
