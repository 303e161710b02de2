"""Metric configuration files: loading, merging, validation and conversion."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from metricsgen.definitions import (
    AttributeDef,
    DocAttribute,
    DocConfig,
    DocMetric,
    EnumConfig,
    EnumValue,
    MetricConfig,
)
from metricsgen.naming import (
    has_duplicate_strings,
    markdown_link_anchor,
    otel_string_to_camel_case,
    otel_string_to_camel_case_field,
    value_type_to_attribute_constructor,
)
from metricsgen.prometheus import PrometheusNameGenerator, get_prometheus_label

_LOGGER = logging.getLogger("metricsgen")

VALID_ATTRIBUTE_TYPES = (
    "int",
    "int64",
    "string",
    "float64",
    "bool",
    "[]int",
    "[]int64",
    "[]float64",
    "[]bool",
    "[]string",
)

VALID_METRIC_TYPES = ("int", "int64", "float", "float64")

VALID_ENUM_TYPES = ("string", "int")


class ConfigError(Exception):
    """Raised when a configuration cannot be read or is not usable."""


class InvalidConfigError(ConfigError):
    """Raised when a configuration as a whole is invalid."""

    def __init__(self, message: str, errors: Optional[list[Exception]] = None) -> None:
        super().__init__(message)
        self.errors: list[Exception] = list(errors or [])


class InvalidAttributeError(ConfigError):
    """Raised when an attribute definition is invalid."""


class InvalidMetricError(ConfigError):
    """Raised when a metric definition is invalid."""


class _Loader(yaml.SafeLoader):
    """YAML loader that reads only true/false as booleans, so on/off stay strings."""


_BOOL_TAG = "tag:yaml.org,2002:bool"
_Loader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_Loader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def _scalar_text(value: Any, what: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ConfigError(f"{what} must be a scalar, got {type(value).__name__}")


def _text_list(value: Any, what: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{what} must be a list")
    return [_scalar_text(item, what) for item in value]


def _mapping(value: Any, what: str) -> Mapping[Any, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"{what} must be a mapping")
    return value


@dataclass
class MetricTypeCounter:
    """Counter specification of a metric."""

    value_type: str = ""


@dataclass
class MetricTypeGauge:
    """Gauge specification of a metric."""

    value_type: str = ""


@dataclass
class MetricTypeHistogram:
    """Histogram specification of a metric, with optional explicit buckets."""

    value_type: str = ""
    buckets: list[float] = field(default_factory=list)


@dataclass
class Attribute:
    """An attribute that metrics may carry."""

    name: str = ""
    description: str = ""
    type: str = ""
    enum: list[str] = field(default_factory=list)

    @classmethod
    def _from_dict(cls, data: Any, key: str) -> Attribute:
        if data is None:
            raise ConfigError(f"attribute {key!r} has no definition")
        body = _mapping(data, f"attribute {key!r}")
        return cls(
            description=_scalar_text(body.get("description"), "description"),
            type=_scalar_text(body.get("type"), "type"),
            enum=_text_list(body.get("enum"), "enum"),
        )

    def validate(self) -> None:
        """Raise InvalidAttributeError if the attribute definition is not usable."""
        self._check(_LOGGER)

    def _check(self, logger: logging.Logger) -> None:
        if not self.name:
            raise InvalidAttributeError("attribute has an empty name")
        problems = []
        if self.type not in VALID_ATTRIBUTE_TYPES:
            problems.append(
                f"invalid type {self.type!r}, must be one of {','.join(VALID_ATTRIBUTE_TYPES)}"
            )
        if self.enum and self.type not in VALID_ENUM_TYPES:
            problems.append(
                f"enum not supported for type {self.type!r}, must be : {','.join(VALID_ENUM_TYPES)}"
            )
        for problem in problems:
            logger.error("attribute %s: %s", self.name, problem)
        if problems:
            raise InvalidAttributeError(
                f"invalid attribute {self.name}: " + "; ".join(problems)
            )

    @property
    def generated_value_type(self) -> str:
        """The type generated code uses for this attribute's values."""
        if self.enum:
            return "Enum" + otel_string_to_camel_case(self.name)
        return self.type

    def to_template_definition(self) -> AttributeDef:
        """Return the definition the code generator uses for this attribute."""
        return AttributeDef(
            name=self.name,
            field=otel_string_to_camel_case_field(self.name),
            camel_case=otel_string_to_camel_case(self.name),
            constructor=value_type_to_attribute_constructor(self.type),
            value_type=self.generated_value_type,
            description=self.description,
            enum=bool(self.enum),
        )

    def to_docs_template_definition(self, required: bool) -> DocAttribute:
        """Return the documentation entry for this attribute."""
        return DocAttribute(
            name=self.name,
            prometheus_label=get_prometheus_label(self.name),
            description=self.description,
            value_type=self.type,
            required=required,
        )


def attributes_for_metric(
    names: Iterable[str], attr_table: Mapping[str, Attribute]
) -> list[Attribute]:
    """Look up the named attributes, in the given order."""
    try:
        return [attr_table[name] for name in names]
    except KeyError as exc:
        raise ConfigError(f"no attribute definition for {exc.args[0]!r}") from None


def _go_value_type(value_type: str) -> str:
    if value_type.startswith("int"):
        return "int64"
    if value_type.startswith("float"):
        return "float64"
    raise ValueError(f"invalid input type : {value_type}")


def _otel_value_type(value_type: str) -> str:
    if value_type.startswith("int"):
        return "Int64"
    if value_type.startswith("float"):
        return "Float64"
    raise ValueError(f"invalid input type : {value_type}")


@dataclass
class Metric:
    """A metric with its kind, value type and attributes."""

    name: str = ""
    short: str = ""
    long: str = ""
    unit: str = ""
    counter: Optional[MetricTypeCounter] = None
    gauge: Optional[MetricTypeGauge] = None
    histogram: Optional[MetricTypeHistogram] = None
    attributes: list[str] = field(default_factory=list)
    optional_attributes: list[str] = field(default_factory=list)

    @classmethod
    def _from_dict(cls, data: Any, key: str) -> Metric:
        if data is None:
            raise ConfigError(f"metric {key!r} has no definition")
        body = _mapping(data, f"metric {key!r}")
        counter = gauge = histogram = None
        if body.get("counter") is not None:
            spec = _mapping(body["counter"], "counter")
            counter = MetricTypeCounter(_scalar_text(spec.get("value_type"), "value_type"))
        if body.get("gauge") is not None:
            spec = _mapping(body["gauge"], "gauge")
            gauge = MetricTypeGauge(_scalar_text(spec.get("value_type"), "value_type"))
        if body.get("histogram") is not None:
            spec = _mapping(body["histogram"], "histogram")
            raw_buckets = spec.get("buckets") or []
            if not isinstance(raw_buckets, list):
                raise ConfigError("buckets must be a list")
            try:
                buckets = [float(bucket) for bucket in raw_buckets]
            except (TypeError, ValueError):
                raise ConfigError("buckets must be numbers") from None
            histogram = MetricTypeHistogram(
                _scalar_text(spec.get("value_type"), "value_type"), buckets
            )
        return cls(
            short=_scalar_text(body.get("short"), "short"),
            long=_scalar_text(body.get("long"), "long"),
            unit=_scalar_text(body.get("unit"), "unit"),
            counter=counter,
            gauge=gauge,
            histogram=histogram,
            attributes=_text_list(body.get("attributes"), "attributes"),
            optional_attributes=_text_list(
                body.get("optional_attributes"), "optional_attributes"
            ),
        )

    def _kinds(self) -> list[Union[MetricTypeCounter, MetricTypeGauge, MetricTypeHistogram]]:
        return [kind for kind in (self.counter, self.gauge, self.histogram) if kind is not None]

    def value_type(self) -> str:
        """Return the declared value type, or an empty string if no kind is declared."""
        kinds = self._kinds()
        return kinds[0].value_type if kinds else ""

    def metric_type(self) -> str:
        """Return "Counter", "Gauge" or "Histogram"."""
        if self.counter is not None:
            return "Counter"
        if self.gauge is not None:
            return "Gauge"
        if self.histogram is not None:
            return "Histogram"
        raise ValueError(f"metric {self.name!r} has no registered metric type")

    def validate(self, attr_table: Mapping[str, Attribute]) -> None:
        """Raise InvalidMetricError if the metric definition is not usable."""
        self._check(attr_table, _LOGGER)

    def _check(self, attr_table: Mapping[str, Attribute], logger: logging.Logger) -> None:
        if not self.name:
            raise InvalidMetricError("metric has an empty name")
        problems = []
        count = len(self._kinds())
        if count == 0:
            problems.append("no metric types declared")
            problems.append("metrics must have `gauge`,`counter` or `histogram` specs defined")
        elif count > 1:
            problems.append("multiple metric types declared for metric")
        value_type = self.value_type()
        if value_type not in VALID_METRIC_TYPES:
            problems.append(
                f"invalid value type : `{value_type}`, must be one of : {','.join(VALID_METRIC_TYPES)}"
            )
        if has_duplicate_strings(self.attributes):
            problems.append("duplicate attribute registered to metric")
        problems.extend(
            f"no attribute definition for {attr!r}"
            for attr in self.attributes
            if attr not in attr_table
        )
        problems.extend(
            f"no matching optional attribute {attr!r}"
            for attr in self.optional_attributes
            if attr not in attr_table
        )
        optional = set(self.optional_attributes)
        problems.extend(
            f"attribute {attr!r} defined as both required and optional"
            for attr in dict.fromkeys(self.attributes)
            if attr in optional
        )
        for problem in problems:
            logger.error("metric %s: %s", self.name, problem)
        if problems:
            raise InvalidMetricError(f"invalid metric {self.name}: " + "; ".join(problems))

    def to_template_definition(self, attr_table: Mapping[str, Attribute]) -> MetricConfig:
        """Return the definition the code generator uses for this metric."""
        required = attributes_for_metric(self.attributes, attr_table)
        optional = attributes_for_metric(self.optional_attributes, attr_table)
        value_type = self.value_type()
        return MetricConfig(
            name=self.name,
            description=self.short,
            units=self.unit,
            value_type=_otel_value_type(value_type),
            value=_go_value_type(value_type),
            metric_type=self.metric_type(),
            required_attributes=[attr.to_template_definition() for attr in required],
            optional_attributes=[attr.to_template_definition() for attr in optional],
            buckets=list(self.histogram.buckets) if self.histogram is not None else [],
        )

    def to_docs_template_definition(self, attr_table: Mapping[str, Attribute]) -> DocMetric:
        """Return the documentation entry for this metric, attributes sorted by name."""
        docs = [
            attr.to_docs_template_definition(True)
            for attr in attributes_for_metric(self.attributes, attr_table)
        ]
        docs.extend(
            attr.to_docs_template_definition(False)
            for attr in attributes_for_metric(self.optional_attributes, attr_table)
        )
        docs.sort(key=lambda doc: doc.name)
        prometheus_name = PrometheusNameGenerator().get_prometheus_name(
            self.name, self.unit, is_counter=self.counter is not None
        )
        return DocMetric(
            name=self.name,
            prometheus_name=prometheus_name,
            link=markdown_link_anchor(self.name),
            short=self.short,
            long=self.long,
            unit=self.unit,
            metric_type=self.metric_type(),
            value_type=self.value_type(),
            attributes=docs,
        )


@dataclass
class Config:
    """A set of attribute and metric definitions read from one or more files."""

    attributes: dict[str, Attribute] = field(default_factory=dict)
    metrics: dict[str, Metric] = field(default_factory=dict)
    source: str = ""
    logger: logging.Logger = field(default=_LOGGER, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Any, source: str = "") -> Config:
        """Build a configuration from decoded YAML data."""
        body = _mapping(data, "configuration")
        attributes = {
            _scalar_text(key, "attribute name"): Attribute._from_dict(value, str(key))
            for key, value in _mapping(body.get("attributes"), "attributes").items()
        }
        metrics = {
            _scalar_text(key, "metric name"): Metric._from_dict(value, str(key))
            for key, value in _mapping(body.get("metrics"), "metrics").items()
        }
        return cls(attributes=attributes, metrics=metrics, source=source)

    @classmethod
    def from_yaml(cls, text: str, source: str = "") -> Config:
        """Build a configuration from YAML text."""
        try:
            data = yaml.load(text, Loader=_Loader)
        except yaml.YAMLError as exc:
            raise ConfigError(f"{source or 'configuration'}: {exc}") from exc
        return cls.from_dict(data, source)

    @classmethod
    def load(cls, path: Union[str, PathLike[str]]) -> Config:
        """Read and sanitize the configuration stored at ``path``."""
        text = Path(path).read_text(encoding="utf-8")
        config = cls.from_yaml(text, str(path))
        config.sanitize()
        return config

    def sanitize(self) -> None:
        """Give every attribute and metric the name it is keyed by."""
        for name, attribute in self.attributes.items():
            attribute.name = name
        for name, metric in self.metrics.items():
            metric.name = name

    def merge(self, *args: Config) -> None:
        """Add the definitions of other configurations, refusing duplicate names."""
        for incoming in args:
            self.logger.info("merging configs from %s", incoming.source)
            self._merge_one(incoming)

    def _merge_one(self, incoming: Config) -> None:
        dup_attrs = [name for name in self.attributes if name in incoming.attributes]
        dup_metrics = [name for name in self.metrics if name in incoming.metrics]
        for name in dup_attrs:
            self.logger.error("duplicate attribute %s defined in %s", name, incoming.source)
        for name in dup_metrics:
            self.logger.error("duplicate metric %s defined in %s", name, incoming.source)
        if dup_attrs or dup_metrics:
            raise InvalidConfigError(
                f"invalid config: duplicate definitions merging {incoming.source or 'configuration'}: "
                + ", ".join(dup_attrs + dup_metrics)
            )
        self.attributes.update(incoming.attributes)
        self.metrics.update(incoming.metrics)

    def validate(self) -> None:
        """Raise InvalidConfigError listing every invalid attribute and metric."""
        if not self.attributes and not self.metrics:
            message = "config must have at least one attribute or metric"
            self.logger.error(message)
            raise InvalidConfigError(message)
        errors: list[Exception] = []
        for attribute in self.attributes.values():
            try:
                attribute._check(self.logger)
            except InvalidAttributeError as exc:
                self.logger.error("%s", exc)
                errors.append(exc)
        for metric in self.metrics.values():
            try:
                metric._check(self.attributes, self.logger)
            except InvalidMetricError as exc:
                errors.append(exc)
        if errors:
            raise InvalidConfigError("\n".join(str(error) for error in errors), errors)

    def to_metrics_template_definition(self) -> dict[str, MetricConfig]:
        """Return the code generator's metric definitions keyed by struct name."""
        return {
            otel_string_to_camel_case(metric.name): metric.to_template_definition(self.attributes)
            for metric in self.metrics.values()
        }

    def to_enum_template_definition(self) -> list[EnumConfig]:
        """Return the enumerated attribute types, sorted by type name."""
        enums = []
        for attribute in self.attributes.values():
            if not attribute.enum:
                continue
            values = []
            for index, member in enumerate(attribute.enum):
                if attribute.type == "string":
                    values.append(EnumValue(otel_string_to_camel_case(member), f'"{member}"'))
                elif attribute.type == "int":
                    values.append(EnumValue(otel_string_to_camel_case(member), index))
            enums.append(
                EnumConfig(
                    enum_type=attribute.generated_value_type,
                    description=attribute.description,
                    value_type=attribute.type,
                    camel_case=otel_string_to_camel_case(attribute.name),
                    values=values,
                )
            )
        enums.sort(key=lambda enum: enum.enum_type)
        return enums

    def to_docs_template_definition(self) -> DocConfig:
        """Return the documentation of every metric, sorted by name."""
        docs = [metric.to_docs_template_definition(self.attributes) for metric in self.metrics.values()]
        docs.sort(key=lambda doc: doc.name)
        return DocConfig(metrics=docs)