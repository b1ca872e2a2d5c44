# -*- coding: utf-8 -*-
"""
Conversions between wall-clock strings and seconds since midnight.

Sun time sources answer in either 24-hour ("18:42", "18:42:07") or 12-hour
("6:42 PM", "6:42:07 p.m.") form; everything downstream works in seconds.
"""

import re

SECONDS_PER_DAY = 86400

_TIME_RE = re.compile(
    r'^\s*(\d{1,2}):([0-5]\d)(?::([0-5]\d))?(?:[.:]\d+)?\s*'
    r'(?P<meridiem>[AaPp]\.?\s*[Mm]\.?)?\s*$'
)


def time_to_seconds(text):
    """
    Parse a wall-clock string into seconds since midnight.
    Raises ValueError on anything that isn't a time of day.
    """
    match = _TIME_RE.match(text or "")
    if not match:
        raise ValueError(f"Not a time of day: {text!r}")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3) or 0)
    meridiem = match.group('meridiem')

    if meridiem:
        if not 1 <= hours <= 12:
            raise ValueError(f"Hour out of range for 12-hour time: {text!r}")
        hours = hours % 12
        if meridiem[0] in "Pp":
            hours += 12
    elif hours > 23:
        raise ValueError(f"Hour out of range: {text!r}")

    return hours * 3600 + minutes * 60 + seconds


def format_seconds(seconds):
    """Seconds since midnight as HH:MM:SS"""
    seconds = int(seconds) % SECONDS_PER_DAY
    return f"{seconds // 3600:02d}:{seconds // 60 % 60:02d}:{seconds % 60:02d}"


def seconds_since_midnight(moment):
    """Seconds since midnight of a datetime"""
    return moment.hour * 3600 + moment.minute * 60 + moment.second


def seconds_to_time(seconds):
    """Duration for log lines: HH:MM, or 'N days HH:MM'. Sign is dropped."""
    total = abs(int(seconds))
    days = total // SECONDS_PER_DAY
    hours = total // 3600 % 24
    minutes = total // 60 % 60
    if days > 0:
        return f"{days} days {hours:02d}:{minutes:02d}"
    return f"{hours:02d}:{minutes:02d}"


def seconds_to_time_ampm(seconds):
    """Clock time for log lines in 12-hour form, e.g. '1:05 PM'"""
    total = abs(int(seconds))
    days = total // SECONDS_PER_DAY
    hours = total // 3600 % 24
    minutes = total // 60 % 60
    meridiem = "PM" if hours > 11 else "AM"
    hours = hours % 12 or 12
    if days > 0:
        return f"{days} days {hours}:{minutes:02d} {meridiem}"
    return f"{hours}:{minutes:02d} {meridiem}"


def describe_time_difference(difference, label):
    """'Sunset is coming up in about 02:10' / 'Sunrise was about 05:00 ago'"""
    if difference >= 0:
        return f"{label} is coming up in about {seconds_to_time(difference)}"
    return f"{label} was about {seconds_to_time(difference)} ago"
