"""Command line entry point: read, merge and check metric configuration files."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Iterable, Sequence
from typing import Optional, TextIO

from metricsgen.config import Config, ConfigError, InvalidConfigError

VERSION = "v0.0.0-dev"
GIT_COMMIT = "HEAD"

DEFAULT_PACKAGE = "metrics"

_LOGGER_NAME = "metricsgen"
_HANDLER_NAME = "metricsgen-cli"
# Hour and minute with AM/PM, as in "3:04PM".
_TIME_FORMAT = "%I:%M%p"


def friendly_version() -> str:
    """Return the version shown by ``--version``."""
    return f"{VERSION} ({GIT_COMMIT})"


def configure_logging(stream: Optional[TextIO] = None) -> logging.Logger:
    """Send the package's log records, down to debug level, to ``stream``."""
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(message)s", datefmt=_TIME_FORMAT)
    )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return logger


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the ``metricsgen`` command."""
    parser = argparse.ArgumentParser(
        prog="metricsgen",
        usage="metricsgen <filename> [-f FILE]... | metricsgen validate <filename>",
        description="Read a metrics definition file and prepare generated metrics and docs.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s version {friendly_version()}",
    )
    parser.add_argument(
        "-f",
        "--extra-files",
        action="append",
        default=[],
        metavar="FILE",
        help="extra metricsgen files to aggregate during generation",
    )
    parser.add_argument(
        "target",
        metavar="filename",
        help="the metricsgen file, or 'validate' to only validate a file",
    )
    parser.add_argument(
        "filename",
        nargs="?",
        help="the file to validate when the validate command is given",
    )
    return parser


def _package_name() -> str:
    return os.environ.get("GOPACKAGE") or DEFAULT_PACKAGE


def load_and_check(path: str, extra_paths: Iterable[str] = ()) -> Config:
    """Load ``path``, merge the extra files into it and validate the result."""
    logger = logging.getLogger(_LOGGER_NAME)
    logger.info("reading base configuration from %s", path)
    config = Config.load(path)
    config.logger = logger

    extras = []
    for extra_path in extra_paths:
        logger.info("reading extra configuration from %s", extra_path)
        extras.append(Config.load(extra_path))

    if extras:
        logger.info("merging configurations")
        config.merge(*extras)

    logger.info("validating configuration")
    config.validate()
    return config


def _generate(path: str, extra_paths: Sequence[str]) -> int:
    logger = logging.getLogger(_LOGGER_NAME)
    package = _package_name()
    logger.info("package=%s metrics-file=%s", package, path)
    try:
        config = load_and_check(path, extra_paths)
        metrics = config.to_metrics_template_definition()
        enums = config.to_enum_template_definition()
        docs = config.to_docs_template_definition()
    except (OSError, ConfigError, ValueError) as exc:
        logger.error("%s: %s", path, exc)
        return 1
    logger.info(
        "prepared %d metric definitions, %d enum types and %d documented metrics for package %s",
        len(metrics),
        len(enums),
        len(docs.metrics),
        package,
    )
    return 0


def _validate(path: str) -> int:
    logger = logging.getLogger(_LOGGER_NAME)
    try:
        config = Config.load(path)
    except (OSError, ConfigError, ValueError) as exc:
        logger.error("%s: %s", path, exc)
        return 1
    config.logger = logger
    try:
        config.validate()
    except InvalidConfigError as exc:
        logger.error("validation of %s failed: %s", path, exc)
        return 0
    logger.info("configuration %s is valid", path)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command and return its exit status."""
    configure_logging(sys.stderr)
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.target == "validate":
        if args.filename is None:
            parser.error("validate accepts 1 arg(s), received 0")
        if args.extra_files:
            parser.error("validate does not take extra files")
        return _validate(args.filename)
    if args.filename is not None:
        parser.error("accepts 1 arg(s), received 2")
    return _generate(args.target, args.extra_files)


if __name__ == "__main__":
    sys.exit(main())