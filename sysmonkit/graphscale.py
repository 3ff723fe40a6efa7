"""Scale and label helpers for the resource load graphs."""

from __future__ import annotations

import math

FNV_OFFSET_BASIS = 0xCBF29CE484222325
FNV_PRIME = 0x00000100000001B3
_MASK64 = (1 << 64) - 1

MIN_BIT_MAX = 10000
MIN_BYTE_MAX = 1024


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def format_duration(seconds: int) -> str:
    """Describe a span of seconds as hours, minutes and seconds.

    When hours are shown the minutes are rounded, and seconds are dropped if
    rounding carries into a whole hour. Parts that are zero are left empty,
    so the three fields are always joined by two spaces.
    """
    seconds = int(seconds)
    minutes = seconds // 60
    hours = seconds // 3600

    if hours:
        if minutes % 60 == 0:
            minutes = 0
        else:
            minutes = int(round(seconds / 60.0)) % 60
            if minutes == 0:
                hours += 1
                seconds = hours * 3600

    secs = seconds % 60
    return " ".join(
        (
            _plural(hours, "hr", "hrs") if hours > 0 else "",
            _plural(minutes, "min", "mins") if minutes > 0 else "",
            _plural(secs, "sec", "secs") if secs > 0 else "",
        )
    )


def nicenum(x: float, round_: bool) -> float:
    """Return a "nice" number (1, 2 or 5 times a power of ten) close to *x*.

    With *round_* the nearest nice number is chosen, otherwise the smallest
    nice number not below *x*. *x* must be positive.
    """
    if x <= 0:
        raise ValueError("nicenum needs a positive number")
    expv = math.floor(math.log10(x))
    f = x / math.pow(10.0, expv)
    if round_:
        if f < 1.5:
            nf = 1.0
        elif f < 3.0:
            nf = 2.0
        elif f < 7.0:
            nf = 5.0
        else:
            nf = 10.0
    else:
        if f <= 1.0:
            nf = 1.0
        elif f <= 2.0:
            nf = 2.0
        elif f <= 5.0:
            nf = 5.0
        else:
            nf = 10.0
    return nf * math.pow(10.0, expv)


def fnv1_hash64(name: str | bytes) -> int:
    """Return the 64-bit FNV-1 hash of a name.

    Bytes are taken as signed characters, so those above 127 are
    sign-extended before being mixed in.
    """
    data = name.encode("utf-8") if isinstance(name, str) else bytes(name)
    value = FNV_OFFSET_BASIS
    for byte in data:
        char = byte - 256 if byte >= 128 else byte
        value = ((value * FNV_PRIME) & _MASK64) ^ (char & _MASK64)
    return value


def nice_bits_max(new_max: int, ticks: int) -> int:
    """Round a byte rate maximum so each of *ticks* grid steps is a nice bit rate.

    Returns the new maximum in bytes.
    """
    if ticks <= 0:
        raise ValueError("the graph needs at least one tick")
    bit_max = max(int(new_max) * 8, MIN_BIT_MAX)
    step = nicenum(float(bit_max // ticks), False)
    bit_max = int(ticks * step)
    return bit_max // 8


def nice_bytes_max(new_max: int) -> int:
    """Round a byte maximum up, with some headroom, to one significant digit.

    The result is a single digit times a power of ten times a power of 1024,
    and never less than 1 KiB.
    """
    value = max(int(1.1 * new_max), MIN_BYTE_MAX)

    pow2 = math.floor(math.log2(value))
    base10 = int(pow2 / 10.0)
    unit = 1 << (base10 * 10)
    coef10 = math.ceil(value / float(unit))
    if value > coef10 * unit:
        raise ArithmeticError(f"cannot decompose {value}")

    factor10 = int(math.pow(10.0, math.floor(math.log10(coef10))))
    coef10 = int(math.ceil(coef10 / float(factor10))) * factor10

    return coef10 * unit