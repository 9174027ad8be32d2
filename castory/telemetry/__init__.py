"""Telemetry and observability helpers.

This package emits structured step logs and tracks billable provider usage.
"""

from .logger import StepLogger, configure_logging
from .usage import UsageTracker

__all__ = ["StepLogger", "UsageTracker", "configure_logging"]
