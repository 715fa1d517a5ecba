"""Human readable duration formatting."""


def format_duration(seconds: float) -> str:
    """Format a duration as ``"Xm Ys"`` or ``"Ys"``.

    The value is rounded to the nearest second. Hours are not split out,
    so 8 hours renders as ``"480m 0s"``.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration
    """
    total = int(round(seconds))
    minutes, secs = divmod(total, 60)
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
