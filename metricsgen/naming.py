"""String conversions used to derive identifiers from telemetry names."""

from __future__ import annotations

import re
from collections.abc import Iterable

_DELIMITERS = re.compile(r"[._-]")
_NON_ANCHOR_CHARS = re.compile(r"[^a-z0-9 -]")

_ATTRIBUTE_CONSTRUCTORS = {
    "int": "Int",
    "int64": "Int64",
    "bool": "Bool",
    "float64": "Float64",
    "string": "String",
    "[]int": "IntSlice",
    "[]int64": "Int64Slice",
    "[]float64": "Float64Slice",
    "[]bool": "BoolSlice",
    "[]string": "StringSlice",
}


def capitalize_first(s: str) -> str:
    """Return ``s`` with its first character upper-cased."""
    return s[:1].upper() + s[1:]


def otel_string_to_camel_case(value: str) -> str:
    """Turn a dotted, dashed or underscored name into UpperCamelCase."""
    return "".join(part[0].upper() + part[1:] for part in _DELIMITERS.split(value) if part)


def otel_string_to_camel_case_field(value: str) -> str:
    """Turn a dotted, dashed or underscored name into lowerCamelCase."""
    camel = otel_string_to_camel_case(value)
    return camel[:1].lower() + camel[1:]


def otel_string_to_prom_label(value: str) -> str:
    """Turn a name into a snake_case label, splitting on capitals and delimiters."""
    pieces = []
    for char in value:
        if char.isupper():
            pieces.append("_" + char.lower())
        elif char in ".-":
            pieces.append("_")
        elif char.isalpha() or char.isdecimal() or char == "_":
            pieces.append(char)
    return "".join(pieces).strip("_")


def value_type_to_attribute_constructor(value_type: str) -> str:
    """Return the attribute constructor name for a declared attribute type."""
    try:
        return _ATTRIBUTE_CONSTRUCTORS[value_type]
    except KeyError:
        raise ValueError(f"unknown value type: {value_type}") from None


def has_duplicate_strings(values: Iterable[str]) -> bool:
    """Return True if any string occurs more than once."""
    seen: set[str] = set()
    for value in values:
        if value in seen:
            return True
        seen.add(value)
    return False


def markdown_link_anchor(header: str) -> str:
    """Return the in-page anchor that a Markdown renderer gives a header."""
    anchor = _NON_ANCHOR_CHARS.sub("", header.lower())
    return anchor.replace(" ", "-")