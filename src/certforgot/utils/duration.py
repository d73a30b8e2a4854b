"""
Duration string parsing.

Configuration durations use compact unit-suffixed strings such as
"720h", "1h30m", "90s", "1.5h" or "250ms". Valid units are
"ns", "us" (or "µs"), "ms", "s", "m" and "h". A leading sign is allowed
and the bare string "0" means zero.
"""

import re
from datetime import timedelta

from certforgot.errors import ConfigValidationError

# Unit length in microseconds; nanoseconds are kept as a fraction
_UNITS: dict[str, float] = {
    "ns": 0.001,
    "us": 1.0,
    "µs": 1.0,
    "μs": 1.0,
    "ms": 1_000.0,
    "s": 1_000_000.0,
    "m": 60_000_000.0,
    "h": 3_600_000_000.0,
}

_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration string into a timedelta.

    Args:
        value: Duration string (e.g. "720h", "-1h30m")

    Returns:
        Parsed duration

    Raises:
        ConfigValidationError: If the string is empty, has a missing or
            unknown unit, contains stray characters or does not fit a
            timedelta
    """
    if not isinstance(value, str):
        raise ConfigValidationError(
            f"duration must be a string, got {type(value).__name__}"
        )

    text = value.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise ConfigValidationError(f"invalid duration '{value}'")

    microseconds = 0.0
    position = 0
    while position < len(text):
        match = _COMPONENT.match(text, position)
        if match is None:
            raise ConfigValidationError(
                f"invalid duration '{value}': expected <number><unit> at "
                f"'{text[position:]}', units are ns, us, ms, s, m, h"
            )
        number, unit = match.groups()
        microseconds += float(number) * _UNITS[unit]
        position = match.end()

    try:
        return sign * timedelta(microseconds=microseconds)
    except OverflowError as e:
        raise ConfigValidationError(f"duration '{value}' is out of range") from e


def format_duration(value: timedelta) -> str:
    """Render a timedelta in the same unit-suffixed form, e.g. "1h30m0s"."""
    total = value.total_seconds()
    sign = "-" if total < 0 else ""
    total = abs(total)
    if total == 0:
        return "0s"

    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if hours or minutes:
        parts.append(f"{int(minutes)}m")
    parts.append(f"{seconds:g}s")
    return sign + "".join(parts)
