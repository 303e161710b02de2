# metricsgen

`metricsgen` reads metric definitions written in YAML, checks them, merges
definitions spread over several files, and turns them into models for
generated instrumentation code and for Markdown documentation. It also works
out the name each metric and attribute gets when exported to Prometheus.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Describing metrics

A definition file has two top-level maps, `attributes` and `metrics`. The key
of each entry is its name.

```yaml
attributes:
  cpu.id:
    description: CPU identifier
    type: int
  cpu.mode:
    description: CPU mode
    type: string
    enum: [active, idle]

metrics:
  dummy.tcp.rx:
    short: TCP received bytes
    long: Total bytes received over TCP.
    unit: By
    counter:
      value_type: int64
    attributes: [cpu.mode]
    optional_attributes: [cpu.id]
```

Attribute types are `int`, `int64`, `string`, `float64`, `bool` and the slice
forms `[]int`, `[]int64`, `[]float64`, `[]bool`, `[]string`. Enumerations are
allowed only for `string` and `int` attributes. Only `true` and `false` are
read as booleans, so enum members such as `on` and `off` stay strings.

Each metric declares exactly one of `counter`, `gauge` or `histogram`, with a
`value_type` of `int`, `int64`, `float` or `float64`. A histogram may also list
numeric `buckets`. Every name in `attributes` and `optional_attributes` has to
be defined, no required attribute may appear twice, and none may be both
required and optional.

## Command line

Check a single file:

```
metricsgen validate metrics.yaml
```

Problems found while validating are logged; the command exits with status 0
even then, and with status 1 only when the file cannot be read or parsed.

Load a base file, merge extra files into it and validate the result:

```
metricsgen metrics.yaml -f attributes1.yaml -f attributes2.yaml
```

Merging fails if two files define the same attribute or metric. On success the
command builds the code and documentation models and logs how many metric
definitions, enum types and documented metrics it prepared, together with the
target package name, taken from the `GOPACKAGE` environment variable or
`metrics` when it is unset. Any read, merge or validation error gives exit
status 1.

Progress and problems are logged to standard error. `metricsgen --version`
prints the version.

## Library use

```python
from metricsgen.config import Config
from metricsgen.prometheus import PrometheusNameGenerator

config = Config.load("metrics.yaml")   # reads, parses and sanitizes
config.validate()                      # raises InvalidConfigError on problems

docs = config.to_docs_template_definition()
print(docs.metric_names())

generator = PrometheusNameGenerator()
print(generator.get_prometheus_name("dummy.tcp.rx", "By", True))
# dummy_tcp_rx_bytes_total
```

`Config.from_yaml` and `Config.from_dict` build a configuration from text or
decoded data; call `sanitize()` on the result to name each entry after its
key. Several configurations can be combined with `Config.merge`.
`to_metrics_template_definition` and `to_enum_template_definition` return the
models for generated code (the dataclasses in `metricsgen.definitions`).
Errors are subclasses of `ConfigError`: `InvalidConfigError`,
`InvalidAttributeError` and `InvalidMetricError`.

`metricsgen.prometheus` also offers `escape_name`, `get_prometheus_label` and
`converts_to_underscore`. The helpers in `metricsgen.naming`, such as
`otel_string_to_camel_case` (`"pid.namespace"` becomes `"PidNamespace"`) and
`markdown_link_anchor`, can be used on their own.

## What it does not do

The package stops at the models. It does not render instrumentation source
code or Markdown documentation from them, and the command writes no output
files.