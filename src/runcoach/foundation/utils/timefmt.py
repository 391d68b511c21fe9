"""Human-readable duration formatting."""

import math


def format_duration(seconds: float | None) -> str:
    """Format seconds into a compact human-readable string.

    Unbounded or missing estimates render as ``"∞"`` / ``"-"``.

    Example:
        >>> format_duration(3725)
        '1h 2m 5s'
        >>> format_duration(42.4)
        '42s'
    """
    if seconds is None:
        return "-"
    if not math.isfinite(seconds) or seconds >= 1e12:
        return "∞"

    total = int(round(seconds))
    negative = total < 0
    total = abs(total)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        text = f"{hours}h {minutes}m {secs}s"
    elif minutes > 0:
        text = f"{minutes}m {secs}s"
    else:
        text = f"{secs}s"
    return f"-{text}" if negative else text
