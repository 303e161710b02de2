import pytest

from metricsgen.config import (
    Attribute,
    Config,
    ConfigError,
    InvalidAttributeError,
    InvalidConfigError,
    InvalidMetricError,
    Metric,
    MetricTypeCounter,
    MetricTypeGauge,
    MetricTypeHistogram,
    attributes_for_metric,
)
from metricsgen.naming import markdown_link_anchor, otel_string_to_camel_case

SAMPLE = """
attributes:
  cpu.id:
    description: cpu identifier
    type: int
  random.int:
    description: random toggle
    type: string
    enum:
      - on
      - off
  cpu.mode:
    description: cpu mode
    type: int
    enum:
      - active
      - idle
metrics:
  dummy.tcp.rx:
    short: received bytes
    long: bytes received over tcp
    unit: By
    counter:
      value_type: int64
    attributes:
      - random.int
    optional_attributes:
      - cpu.mode
  dummy.tcp.connlat:
    short: connection latency
    unit: By
    histogram:
      value_type: float64
      buckets: [1, 2.5, 10]
    attributes:
      - cpu.id
  dummy.tcp.tx:
    short: transmitted bytes
    unit: By
    gauge:
      value_type: int
    attributes:
      - cpu.mode
      - cpu.id
"""


def _config(text=SAMPLE):
    cfg = Config.from_yaml(text, "sample.yaml")
    cfg.sanitize()
    return cfg


def test_sanitize_assigns_names_from_keys():
    cfg = _config()
    assert all(attr.name == key for key, attr in cfg.attributes.items())
    assert all(metric.name == key for key, metric in cfg.metrics.items())
    assert cfg.source == "sample.yaml"


def test_on_off_enum_values_remain_strings():
    cfg = _config()
    assert cfg.attributes["random.int"].enum == ["on", "off"]


def test_histogram_buckets_are_floats():
    cfg = _config()
    assert cfg.metrics["dummy.tcp.connlat"].histogram.buckets == [1.0, 2.5, 10.0]


def test_valid_sample_passes_validation_and_converts():
    cfg = _config()
    assert cfg.validate() is None
    assert cfg.to_docs_template_definition().metric_names() == sorted(cfg.metrics)


def test_empty_config_is_invalid():
    cfg = Config.from_yaml("", "empty.yaml")
    with pytest.raises(InvalidConfigError, match="at least one attribute or metric"):
        cfg.validate()


def test_invalid_attribute_type_is_reported():
    cfg = Config.from_dict({"attributes": {"x": {"type": "complex"}}})
    cfg.sanitize()
    with pytest.raises(InvalidConfigError) as info:
        cfg.validate()
    assert len(info.value.errors) == 1
    assert isinstance(info.value.errors[0], InvalidAttributeError)


def test_enum_on_unsupported_type_is_rejected():
    attr = Attribute(name="ratio", type="float64", enum=["low", "high"])
    with pytest.raises(InvalidAttributeError, match="enum not supported"):
        attr.validate()


def test_attribute_without_name_is_rejected():
    with pytest.raises(InvalidAttributeError, match="empty name"):
        Attribute(type="int").validate()


@pytest.mark.parametrize(
    "metric",
    [
        Metric(name="m"),
        Metric(name="m", counter=MetricTypeCounter("int"), gauge=MetricTypeGauge("int")),
        Metric(name="m", counter=MetricTypeCounter("string")),
        Metric(name="m", counter=MetricTypeCounter("int"), attributes=["a", "a"]),
        Metric(name="m", counter=MetricTypeCounter("int"), attributes=["missing"]),
        Metric(name="m", counter=MetricTypeCounter("int"), optional_attributes=["missing"]),
        Metric(
            name="m",
            counter=MetricTypeCounter("int"),
            attributes=["a"],
            optional_attributes=["a"],
        ),
    ],
)
def test_invalid_metrics_are_rejected(metric):
    table = {"a": Attribute(name="a", type="int")}
    with pytest.raises(InvalidMetricError):
        metric.validate(table)


def test_metric_without_name_is_rejected():
    with pytest.raises(InvalidMetricError, match="empty name"):
        Metric(counter=MetricTypeCounter("int")).validate({})


def test_config_collects_all_metric_errors():
    cfg = Config.from_dict(
        {
            "metrics": {
                "a": {"counter": {"value_type": "string"}},
                "b": {},
            }
        }
    )
    cfg.sanitize()
    with pytest.raises(InvalidConfigError) as info:
        cfg.validate()
    assert len(info.value.errors) == 2
    assert all(isinstance(err, InvalidMetricError) for err in info.value.errors)


def test_metric_type_and_value_type():
    cfg = _config()
    assert cfg.metrics["dummy.tcp.rx"].metric_type() == "Counter"
    assert cfg.metrics["dummy.tcp.tx"].metric_type() == "Gauge"
    assert cfg.metrics["dummy.tcp.connlat"].metric_type() == "Histogram"
    assert cfg.metrics["dummy.tcp.rx"].value_type() == "int64"
    assert Metric(name="m").value_type() == ""
    with pytest.raises(ValueError):
        Metric(name="m").metric_type()


def test_merge_adds_definitions():
    base = _config()
    extra = Config.from_dict({"attributes": {"pid": {"type": "int"}}}, "extra.yaml")
    extra.sanitize()
    base.merge(extra)
    assert "pid" in base.attributes
    assert base.attributes["pid"].name == "pid"


def test_merge_rejects_duplicates_and_keeps_original():
    base = _config()
    other = Config.from_dict(
        {
            "attributes": {"cpu.id": {"type": "string"}, "new.attr": {"type": "int"}},
            "metrics": {"dummy.tcp.rx": {"gauge": {"value_type": "int"}}},
        },
        "dup.yaml",
    )
    other.sanitize()
    with pytest.raises(InvalidConfigError):
        base.merge(other)
    assert "new.attr" not in base.attributes
    assert base.attributes["cpu.id"].type == "int"


def test_metrics_template_definition():
    cfg = _config()
    defs = cfg.to_metrics_template_definition()
    assert set(defs) == {otel_string_to_camel_case(name) for name in cfg.metrics}
    rx = defs[otel_string_to_camel_case("dummy.tcp.rx")]
    assert rx.value_type == "Int64"
    assert rx.value == "int64"
    assert rx.metric_type == "Counter"
    assert rx.description == "received bytes"
    assert [a.name for a in rx.required_attributes] == ["random.int"]
    assert [a.name for a in rx.optional_attributes] == ["cpu.mode"]
    assert rx.required_attributes[0].enum is True
    assert rx.buckets == []
    connlat = defs[otel_string_to_camel_case("dummy.tcp.connlat")]
    assert connlat.value_type == "Float64"
    assert connlat.value == "float64"
    assert connlat.buckets == [1.0, 2.5, 10.0]


def test_attribute_template_definition_uses_enum_type():
    cfg = _config()
    enum_attr = cfg.attributes["random.int"].to_template_definition()
    plain_attr = cfg.attributes["cpu.id"].to_template_definition()
    assert enum_attr.value_type == "Enum" + otel_string_to_camel_case("random.int")
    assert plain_attr.value_type == "int"
    assert plain_attr.constructor == "Int"
    assert plain_attr.enum is False


def test_enum_template_definition():
    cfg = _config()
    enums = cfg.to_enum_template_definition()
    types = [enum.enum_type for enum in enums]
    assert types == sorted(types)
    assert len(enums) == 2
    by_attr = {enum.value_type: enum for enum in enums}
    assert [v.value for v in by_attr["string"].values] == ['"on"', '"off"']
    assert [v.value for v in by_attr["int"].values] == [0, 1]
    assert [v.value_case for v in by_attr["int"].values] == [
        otel_string_to_camel_case("active"),
        otel_string_to_camel_case("idle"),
    ]


def test_docs_template_definition():
    cfg = _config()
    docs = cfg.to_docs_template_definition()
    rx = next(doc for doc in docs.metrics if doc.name == "dummy.tcp.rx")
    assert rx.prometheus_name == "dummy_tcp_rx_bytes_total"
    assert rx.link == markdown_link_anchor("dummy.tcp.rx")
    assert rx.metric_type == "Counter"
    assert rx.long == "bytes received over tcp"
    names = [attr.name for attr in rx.attributes]
    assert names == sorted(names)
    required = {attr.name: attr.required for attr in rx.attributes}
    assert required == {"random.int": True, "cpu.mode": False}
    connlat = next(doc for doc in docs.metrics if doc.name == "dummy.tcp.connlat")
    assert connlat.prometheus_name == "dummy_tcp_connlat_bytes"


def test_attributes_for_metric_preserves_order_and_reports_missing():
    table = {"a": Attribute(name="a"), "b": Attribute(name="b")}
    assert [attr.name for attr in attributes_for_metric(["b", "a"], table)] == ["b", "a"]
    with pytest.raises(ConfigError):
        attributes_for_metric(["c"], table)


def test_load_reads_and_sanitizes(tmp_path):
    path = tmp_path / "metrics.yaml"
    path.write_text(SAMPLE, encoding="utf-8")
    cfg = Config.load(path)
    assert cfg.source == str(path)
    assert cfg.metrics["dummy.tcp.tx"].name == "dummy.tcp.tx"
    assert cfg.metrics["dummy.tcp.tx"].gauge == MetricTypeGauge("int")


@pytest.mark.parametrize(
    "data",
    [
        ["not", "a", "mapping"],
        {"attributes": ["x"]},
        {"attributes": {"x": None}},
        {"metrics": {"m": {"histogram": {"buckets": ["x"]}}}},
        {"attributes": {"x": {"enum": "single"}}},
    ],
)
def test_from_dict_rejects_bad_shapes(data):
    with pytest.raises(ConfigError):
        Config.from_dict(data)


def test_from_yaml_rejects_malformed_text():
    with pytest.raises(ConfigError):
        Config.from_yaml("attributes: [unclosed", "bad.yaml")


def test_histogram_spec_default_buckets():
    metric = Metric(name="h", histogram=MetricTypeHistogram("float"))
    definition = metric.to_template_definition({})
    assert definition.buckets == []
    assert definition.metric_type == "Histogram"