"""Conversions between seconds, milliseconds, microseconds and nanoseconds."""


def _check(value, unit):
    if value < 0:
        raise ValueError(f"negative {unit}: {value}")


def seconds_to_us(seconds):
    """Convert seconds to whole microseconds."""
    _check(seconds, "seconds")
    return round(seconds * 1_000_000)


def seconds_to_ms(seconds):
    """Convert seconds to whole milliseconds, dropping any sub-millisecond part."""
    return seconds_to_us(seconds) // 1000


def ms_to_seconds(ms):
    """Convert milliseconds to seconds."""
    _check(ms, "milliseconds")
    return ms / 1000


def ns_to_us(ns):
    """Convert nanoseconds to whole microseconds, truncating."""
    _check(ns, "nanoseconds")
    return int(ns) // 1000