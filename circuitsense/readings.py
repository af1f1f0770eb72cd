from __future__ import annotations
import re
from typing import Optional

# Leading decimal number, the way a meter display or an operator writes it:
# "5.02", "-0.3", ".45", "12.5 V", "1e-3". Anything without a leading
# number ("OL", "abc", "") does not parse.
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)")

_PREFIXES = {
    "p": 1e-12,
    "n": 1e-9,
    "u": 1e-6,
    "µ": 1e-6,
    "μ": 1e-6,
    "m": 1e-3,
    "": 1.0,
    "k": 1e3,
    "M": 1e6,
}

_BASE_UNITS = {
    "v": "V",
    "volt": "V",
    "volts": "V",
    "a": "A",
    "amp": "A",
    "amps": "A",
    "ohm": "ohm",
    "ohms": "ohm",
    "Ω": "ohm",
    "hz": "Hz",
    "f": "F",
}


def parse_reading(text: str) -> Optional[float]:
    """Parse the leading number of a reading; None when there is none."""
    m = _LEADING_NUMBER.match(text or "")
    if not m:
        return None
    try:
        return float(m.group(1))
    except ValueError:
        return None


def split_unit(unit: str) -> Optional[tuple[float, str]]:
    """Split a unit like "mV" or "kohm" into (scale, base unit)."""
    u = (unit or "").strip()
    if not u:
        return None
    base = _BASE_UNITS.get(u.lower()) or _BASE_UNITS.get(u)
    if base:
        return 1.0, base
    prefix, rest = u[0], u[1:]
    base = _BASE_UNITS.get(rest.lower()) or _BASE_UNITS.get(rest)
    if base is None:
        return None
    # "M" is mega for ohms/hertz; "m" is always milli
    if prefix in _PREFIXES:
        return _PREFIXES[prefix], base
    if prefix.lower() == "k":
        return 1e3, base
    return None


def convert_value(value: float, from_unit: str, to_unit: str) -> Optional[float]:
    """Rescale ``value`` between SI-prefixed forms of the same base unit."""
    src = split_unit(from_unit)
    dst = split_unit(to_unit)
    if src is None or dst is None or src[1] != dst[1]:
        return None
    return value * src[0] / dst[0]


def format_number(value: float) -> str:
    return f"{value:.6g}"


def normalize_meter_value(value: str, unit: str, expected_unit: str) -> str:
    """Express a meter reading in the unit the current step expects.

    Returns the raw value unchanged when it does not parse or the units do
    not share a base (e.g. the meter shows "mA" while the step wants "V").
    """
    number = parse_reading(value)
    if number is None or not unit or not expected_unit:
        return value
    if unit.strip() == expected_unit.strip():
        return value
    converted = convert_value(number, unit, expected_unit)
    if converted is None:
        return value
    return format_number(converted)
