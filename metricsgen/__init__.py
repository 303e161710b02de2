"""Load, merge and validate metric definitions and derive code and documentation models."""

__version__ = "0.0.0.dev0"