import math


def _split(hours: float) -> tuple[int, int]:
    whole = math.floor(hours)
    minutes = int(round((hours - whole) * 60))
    if minutes == 60:
        whole, minutes = whole + 1, 0
    return whole, minutes


def format_hours_long(hours: float) -> str:
    """49.95 -> "49 hrs, 57 min"."""
    whole, minutes = _split(hours)
    if whole == 0 and minutes == 0:
        return "0 hrs, 0 min"
    if whole == 0:
        return f"{minutes} min"
    if minutes == 0:
        return f"{whole} hrs"
    return f"{whole} hrs, {minutes} min"


def format_hours_short(hours: float) -> str:
    """49.95 -> "49h 57m"."""
    whole, minutes = _split(hours)
    if whole == 0 and minutes == 0:
        return "0h 0m"
    if whole == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{whole}h"
    return f"{whole}h {minutes}m"
