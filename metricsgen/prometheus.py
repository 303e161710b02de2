"""Derivation of Prometheus metric names and labels from telemetry names."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


def _byte_units() -> dict[str, str]:
    prefixes = {
        "": "",
        "Ki": "kibi",
        "Mi": "mebi",
        "Gi": "gibi",
        "Ti": "tibi",
        "K": "kilo",
        "M": "mega",
        "G": "giga",
        "T": "tera",
    }
    return {f"{symbol}By": f"{word}bytes" for symbol, word in prefixes.items()}


_TIME_UNITS = dict(
    d="days",
    h="hours",
    min="minutes",
    s="seconds",
    ms="milliseconds",
    us="microseconds",
    ns="nanoseconds",
)

_SI_UNITS = dict(
    m="meters",
    V="volts",
    A="amperes",
    J="joules",
    W="watts",
    g="grams",
)

_OTHER_UNITS = {"Cel": "celsius", "Hz": "hertz", "1": "ratio", "%": "percent"}

UNIT_SUFFIXES: dict[str, str] = {
    **_TIME_UNITS,
    **_byte_units(),
    **_SI_UNITS,
    **_OTHER_UNITS,
}

COUNTER_SUFFIX = "total"


def _is_ascii_letter(char: str) -> bool:
    return "a" <= char <= "z" or "A" <= char <= "Z"


def _is_ascii_digit(char: str) -> bool:
    return "0" <= char <= "9"


def converts_to_underscore(char: str) -> bool:
    """Return True if underscore escaping would turn ``char`` into an underscore."""
    return not (_is_ascii_letter(char) or _is_ascii_digit(char) or char == ":")


def _is_legacy_char(char: str, position: int) -> bool:
    return (
        _is_ascii_letter(char)
        or char in "_:"
        or (_is_ascii_digit(char) and position > 0)
    )


def escape_name(name: str) -> str:
    """Escape a name with underscore escaping, as Prometheus does by default."""
    return "".join(
        char if _is_legacy_char(char, position) else "_"
        for position, char in enumerate(name)
    )


def get_prometheus_label(attribute_key: str) -> str:
    """Return the Prometheus label that an attribute key is exported as."""
    return escape_name(attribute_key)


def _without_counter_suffix(name: str) -> str:
    """Drop a trailing counter suffix and the delimiter in front of it."""
    stem = name.removesuffix(COUNTER_SUFFIX)
    if not stem:
        raise ValueError("metric name is empty once its counter suffix is removed")
    return stem[:-1] if converts_to_underscore(stem[-1]) else stem


@dataclass(frozen=True)
class PrometheusNameGenerator:
    """Builds the metric name a Prometheus exporter gives to a metric."""

    namespace: str = ""
    without_counter_suffixes: bool = False
    without_units: bool = False

    def _unit_suffix(self, name: str, unit: str) -> Optional[str]:
        if self.without_units:
            return None
        suffix = UNIT_SUFFIXES.get(unit)
        if suffix is None or name.endswith(suffix):
            return None
        return suffix

    def get_prometheus_name(self, name: str, unit: str = "", is_counter: bool = False) -> str:
        """Return the exported name for a metric with the given name and unit."""
        counter = is_counter and not self.without_counter_suffixes
        base = escape_name(name)
        if counter:
            # The unit suffix has to come before the counter suffix.
            base = _without_counter_suffix(base)
        base = self.namespace + base
        parts = [base]
        unit_suffix = self._unit_suffix(base, unit)
        if unit_suffix is not None:
            parts.append(unit_suffix)
        if counter:
            parts.append(COUNTER_SUFFIX)
        return "_".join(parts)