"""
Vehicle identifier generation.
"""

import time
import uuid

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def format_base36(value: int) -> str:
    """Lower-case base36 rendering of a non-negative integer."""
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_vehicle_id() -> str:
    """Return an id of the form ``<8 hex chars>-<6 base36 chars>``.

    The hex part comes from a random UUID. The suffix is the leading six
    base36 digits of the nanosecond clock, so it only changes every couple
    of seconds: uniqueness rests on the 32 random bits of the prefix.
    """
    prefix = uuid.uuid4().hex[:8]
    suffix = format_base36(time.time_ns())[:6]
    return f"{prefix}-{suffix}"
