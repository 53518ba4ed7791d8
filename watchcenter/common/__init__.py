"""
Common utilities for Disaster Watch alerting.
"""

from .clock import Clock, SystemClock, FixedClock, day_window, resolve_tz
from .retry import compute_backoff

__all__ = ["Clock", "SystemClock", "FixedClock", "day_window", "resolve_tz",
           "compute_backoff"]
