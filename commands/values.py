"""Value parsing and validation for RN2483 parameter accessors."""

import string

from common.outcome import UnrecognizedResponseError

_HEX_DIGITS = frozenset(string.hexdigits)


def parse_uint(text: str, bits: int, base: int = 10) -> int:
    """Parse an unsigned integer that must fit in the given number of bits."""
    try:
        value = int(text, base)
    except ValueError:
        raise UnrecognizedResponseError(f"Expected an unsigned integer, got {text!r}")
    if text.strip().startswith(("-", "+")) or not 0 <= value < (1 << bits):
        raise UnrecognizedResponseError(f"Value out of range for uint{bits}: {text!r}")
    return value


def parse_int(text: str, bits: int) -> int:
    """Parse a signed decimal integer that must fit in the given number of bits."""
    try:
        value = int(text, 10)
    except ValueError:
        raise UnrecognizedResponseError(f"Expected a signed integer, got {text!r}")
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise UnrecognizedResponseError(f"Value out of range for int{bits}: {text!r}")
    return value


def parse_on_off(text: str) -> bool:
    """Parse the module's on/off tokens."""
    if text == "on":
        return True
    if text == "off":
        return False
    raise UnrecognizedResponseError(f"Expected on/off, got {text!r}")


def check_hex(value: str, length: int, name: str) -> str:
    """Validate a hex string of exactly length characters, returned upper-case.

    Raises:
        ValueError: If the length is wrong or a character is not a hex digit.
    """
    if len(value) != length:
        raise ValueError(f"Invalid {name} length ({len(value)}, expected {length})")
    if not set(value) <= _HEX_DIGITS:
        raise ValueError(f"Invalid {name}: {value!r} is not hexadecimal")
    return value.upper()
