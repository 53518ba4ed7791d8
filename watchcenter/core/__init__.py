"""
Core domain models and pure functions for Disaster Watch alerting.

This module contains the domain models and pure business logic
that are independent of external I/O and infrastructure concerns.
"""

from .models import (
    AlertCondition, AlertDelivery, AlertRule, Coordinates, EmergencyEvent,
    NotificationSettings, Severity,
)
from .conditions import evaluate, evaluate_all, resolve_field
from .composer import compose
from .eligibility import is_method_enabled, destination_for

__all__ = [
    "AlertCondition", "AlertDelivery", "AlertRule", "Coordinates", "EmergencyEvent",
    "NotificationSettings", "Severity",
    "evaluate", "evaluate_all", "resolve_field", "compose",
    "is_method_enabled", "destination_for",
]
