"""Clock-time and display helpers"""

import re
from datetime import date, datetime

CLOCK_TIME_PATTERN = re.compile(r"\b(\d{1,2}):(\d{2})\s*(AM|PM)\b", re.IGNORECASE)

DEFAULT_HOUR = 12


def parse_hour(time_str: str | None) -> int:
    """
    Convert "H:MM AM/PM" to an hour of day (0-23).

    Anything that does not match the pattern, or whose clock hour is
    outside 0-12, falls back to noon.
    """
    if not time_str:
        return DEFAULT_HOUR

    match = CLOCK_TIME_PATTERN.search(time_str)
    if not match:
        return DEFAULT_HOUR

    hour = int(match.group(1))
    if hour > 12:
        return DEFAULT_HOUR
    period = match.group(3).upper()

    if period == "PM" and hour != 12:
        hour += 12
    if period == "AM" and hour == 12:
        hour = 0

    return hour


def format_clock_time(moment: datetime) -> str:
    """Format a datetime as "H:MM AM/PM" (no leading zero on the hour)"""
    period = "PM" if moment.hour >= 12 else "AM"
    display_hour = moment.hour % 12 or 12
    return f"{display_hour}:{moment.minute:02d} {period}"


def weekday_name(day: date) -> str:
    return day.strftime("%A")


def format_inr(amount: float) -> str:
    """
    Format an amount with the rupee sign and Indian digit grouping.

    Example:
        125000 -> "₹1,25,000"
        2499.5 -> "₹2,499.5"
    """
    negative = amount < 0
    text = f"{abs(amount):.2f}".rstrip("0").rstrip(".")
    whole, _, fraction = text.partition(".")

    # Last three digits form one group, then groups of two
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        whole = ",".join(pairs + [tail])

    formatted = f"₹{whole}" + (f".{fraction}" if fraction else "")
    return f"-{formatted}" if negative else formatted
