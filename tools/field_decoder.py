#!/usr/bin/env python3
"""
field_decoder.py - Convert one raw text token into a typed value

Numeric parsing is lenient on purpose: a token is read up to the longest
valid numeric prefix and an unparsable token yields zero, the same way
C's atol/strtod/strtoull treat their input. Only a type tag outside
FieldType is a hard failure (UnsupportedType).

Usage:
    from field_decoder import decode_field
    from field_types import FieldType

    decode_field('42', FieldType.INTEGER)        # 42
    decode_field('3.5kg', FieldType.DOUBLE)      # 3.5
    decode_field('abc', FieldType.INTEGER)       # 0
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from decode_errors import UnsupportedType
from field_types import FieldType

INT64_MIN = -2**63
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1

DecodedValue = Union[int, bool, float, str]

_INT_PREFIX = re.compile(r'\s*([+-]?)(\d+)')
_FLOAT_PREFIX = re.compile(
    r'\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))',
    re.IGNORECASE,
)

# Any digit run longer than this is out of every 64-bit range
_MAX_DIGITS = 20


def _digit_run(digits: str) -> Optional[int]:
    """Value of a digit run, or None when it cannot fit in 64 bits."""
    digits = digits.lstrip('0')
    if len(digits) > _MAX_DIGITS:
        return None
    return int(digits or '0')


def lenient_int(token: str) -> int:
    """Signed base-10 prefix parse, 0 when no digits, clamped to int64."""
    match = _INT_PREFIX.match(token)
    if not match:
        return 0
    sign, digits = match.groups()
    value = _digit_run(digits)
    if value is None:
        return INT64_MIN if sign == '-' else INT64_MAX
    if sign == '-':
        value = -value
    return max(INT64_MIN, min(INT64_MAX, value))


def lenient_uint(token: str) -> int:
    """
    Unsigned base-10 prefix parse.

    A leading '-' negates modulo 2**64 and out of range values saturate
    at UINT64_MAX, matching strtoull.
    """
    match = _INT_PREFIX.match(token)
    if not match:
        return 0
    sign, digits = match.groups()
    value = _digit_run(digits)
    if value is None or value > UINT64_MAX:
        return UINT64_MAX
    if sign == '-':
        return (-value) % (UINT64_MAX + 1)
    return value


def lenient_float(token: str) -> float:
    """Longest floating point prefix, 0.0 when there is none."""
    match = _FLOAT_PREFIX.match(token)
    if not match:
        return 0.0
    return float(match.group(1))


def _decode_bool(token: str) -> bool:
    return lenient_int(token) != 0


def _decode_string(token: str) -> str:
    return token


_DECODERS: Dict[FieldType, Callable[[str], DecodedValue]] = {
    FieldType.INTEGER: lenient_int,
    FieldType.BOOLEAN: _decode_bool,
    FieldType.DOUBLE: lenient_float,
    FieldType.STRING: _decode_string,
    FieldType.TIMESTAMP: lenient_uint,
}


def decode_field(raw_token: str, field_type: Any) -> DecodedValue:
    """Decode one token according to its declared type."""
    if not isinstance(field_type, FieldType) or field_type not in _DECODERS:
        raise UnsupportedType(field_type)
    return _DECODERS[field_type](raw_token)


def render_value(value: DecodedValue, field_type: FieldType) -> str:
    """Textual form of a decoded value."""
    if field_type == FieldType.BOOLEAN:
        return 'true' if value else 'false'
    if field_type == FieldType.DOUBLE:
        return repr(float(value))
    if field_type == FieldType.TIMESTAMP:
        return f"parsed_ts={value}"
    if field_type == FieldType.INTEGER:
        return str(int(value))
    if field_type == FieldType.STRING:
        return str(value)
    raise UnsupportedType(field_type)


@dataclass(frozen=True)
class DecodedField:
    """A decoded value tagged with its field name and type."""
    name: str
    field_type: FieldType
    value: DecodedValue

    def render(self) -> str:
        return render_value(self.value, self.field_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.field_type.name.lower(),
            'value': self.value,
        }


class FieldDecoder:
    """Stateless field decoder; the class form exists so it can be injected."""

    def decode(self, raw_token: str, field_type: Any) -> DecodedValue:
        return decode_field(raw_token, field_type)

    def decode_named(self, name: str, raw_token: str, field_type: Any) -> DecodedField:
        return DecodedField(name, field_type, decode_field(raw_token, field_type))
