"""Display formatting helpers."""


def elapsed(seconds: int) -> str:
    """Format a duration as HH:MM:SS. Hours grow past 99 rather than wrapping."""
    if seconds < 0:
        raise ValueError(f"elapsed() needs a non-negative duration, got {seconds}")
    seconds = int(seconds)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
