[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "metricsgen"
version = "0.0.0.dev0"
description = "Declarative metric definitions: load, merge and validate YAML files and derive code and documentation models"
requires-python = ">=3.10"
keywords = ["metrics", "opentelemetry", "prometheus", "code generation", "yaml"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Code Generators",
    "Topic :: System :: Monitoring",
]
dependencies = [
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
metricsgen = "metricsgen.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["metricsgen"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
