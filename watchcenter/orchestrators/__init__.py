"""
Orchestrators for Disaster Watch alerting.

This module contains the engine that coordinates the flow between
the store, the rule matcher and the delivery dispatcher.
"""
from .alert_engine import AlertEngine

__all__ = ["AlertEngine"]
