"""timehub - unified time tracking aggregation service."""

from timehub import logging_setup  # noqa: F401  registers the TRACE level

__version__ = "0.4.0"
