from typing import Any, Optional


def format_time(seconds: int) -> str:
    """H:MM:SS when at least an hour, else M:SS."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_number(value: Any) -> str:
    """Groups digits by three with spaces: 1234567 -> '1 234 567'."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return "0"
    return f"{value:,}".replace(",", " ")


def format_ratio(ratio: Optional[float]) -> str:
    return f"{ratio:.2f}x" if ratio else "N/A"


def format_speed(speed: Optional[float]) -> str:
    """Fixed 7-column speed field; unknown speed renders as a placeholder."""
    label = "--.-x" if speed is None else f"{speed:g}x"
    return f"{label:<7}"
