"""Coercion of operator input into typed tool arguments.

Every declared kind has its own coercion function. Input is never
rejected: unparseable numbers become NaN, unparseable objects keep the
raw text, and unknown kinds pass the text through unchanged.
"""

import json
import math
import re
from typing import Optional, Union

from shared.models import (
    ArgumentValue,
    BooleanValue,
    NumberValue,
    PropertyKind,
    RawValue,
    SchemaProperty,
    StringValue,
    StructuredValue,
)

_DECIMAL_INT = re.compile(r"[+-]?[0-9]+")
_DECIMAL_FLOAT = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")
_PREFIXED_INT = re.compile(r"0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")


def parse_number(text: str) -> Union[int, float]:
    """
    Parse text the way a primitive number conversion does.

    Surrounding whitespace is ignored and empty input is zero. Hex, octal
    and binary literals need their ``0x``/``0o``/``0b`` prefix and take no
    sign. Anything unparseable is NaN.
    """
    text = text.strip()

    if not text:
        return 0
    if _DECIMAL_INT.fullmatch(text):
        try:
            return int(text)
        except ValueError:
            # over the interpreter's integer digit limit
            return float(text)
    if _PREFIXED_INT.fullmatch(text):
        return int(text, 0)
    if _DECIMAL_FLOAT.fullmatch(text):
        return float(text)
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf

    return math.nan


def parse_boolean(text: str) -> bool:
    return text.strip().lower() == "true"


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def coerce_number(text: str) -> NumberValue:
    return NumberValue(value=parse_number(text))


def coerce_boolean(text: str) -> BooleanValue:
    return BooleanValue(value=parse_boolean(text))


def coerce_object(text: str) -> Union[StructuredValue, RawValue]:
    """Strict JSON parse, falling back to the raw text."""
    try:
        return StructuredValue(value=json.loads(text, parse_constant=_reject_constant))
    except ValueError:
        return RawValue(value=text)


def coerce_string(text: str) -> StringValue:
    return StringValue(value=text)


COERCERS = {
    PropertyKind.STRING: coerce_string,
    PropertyKind.NUMBER: coerce_number,
    PropertyKind.BOOLEAN: coerce_boolean,
    PropertyKind.OBJECT: coerce_object,
}


def coerce_value(kind: Optional[PropertyKind], text: str) -> ArgumentValue:
    """
    Coerce operator text to the given kind.

    Args:
        kind: Declared kind, or None for a missing or unknown schema type
        text: Line read from the operator, unmodified

    Returns:
        The typed argument value; unknown kinds keep the raw text
    """
    coercer = COERCERS.get(kind) if kind is not None else None
    if coercer is None:
        return RawValue(value=text)
    return coercer(text)


def should_record(prop: SchemaProperty, text: str) -> bool:
    """Empty input is recorded only for required properties."""
    return bool(text) or prop.required
