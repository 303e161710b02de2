"""Definitions handed to the code and documentation generators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass
class ImportDef:
    """A dependency imported by generated code, with an optional alias."""

    dependency: str
    alias: str = ""


@dataclass
class AttributeDef:
    """An attribute as seen by the code generator."""

    name: str
    field: str = ""
    camel_case: str = ""
    constructor: str = ""
    value_type: str = ""
    description: str = ""
    enum: bool = False


@dataclass
class MetricConfig:
    """A metric as seen by the code generator."""

    name: str
    description: str = ""
    units: str = ""
    # One of "Int64" or "Float64".
    value_type: str = ""
    metric_type: str = ""
    value: str = ""
    required_attributes: list[AttributeDef] = field(default_factory=list)
    optional_attributes: list[AttributeDef] = field(default_factory=list)
    buckets: list[float] = field(default_factory=list)


@dataclass
class EnumValue:
    """One member of an enumerated attribute."""

    value_case: str
    value: Union[str, int]


@dataclass
class EnumConfig:
    """An enumerated attribute type as seen by the code generator."""

    enum_type: str
    description: str = ""
    value_type: str = ""
    camel_case: str = ""
    values: list[EnumValue] = field(default_factory=list)


@dataclass
class GenConfig:
    """Everything the code generator needs for one output file."""

    package_name: str
    import_defs: list[ImportDef] = field(default_factory=list)
    metrics: dict[str, MetricConfig] = field(default_factory=dict)
    enum_types: list[EnumConfig] = field(default_factory=list)


@dataclass
class DocAttribute:
    """An attribute as listed in the generated documentation."""

    name: str
    prometheus_label: str = ""
    description: str = ""
    value_type: str = ""
    required: bool = False


@dataclass
class DocMetric:
    """A metric as listed in the generated documentation."""

    name: str
    prometheus_name: str = ""
    link: str = ""
    short: str = ""
    long: str = ""
    unit: str = ""
    metric_type: str = ""
    value_type: str = ""
    attributes: list[DocAttribute] = field(default_factory=list)


@dataclass
class DocConfig:
    """The documented metrics, in the order they are listed."""

    metrics: list[DocMetric] = field(default_factory=list)

    def metric_names(self) -> list[str]:
        """Return the names of the documented metrics in order."""
        return [metric.name for metric in self.metrics]