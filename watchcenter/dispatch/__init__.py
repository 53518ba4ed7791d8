"""
Alert delivery dispatch for Disaster Watch alerting.
"""

from .dispatcher import DeliveryDispatcher, Reservation

__all__ = ["DeliveryDispatcher", "Reservation"]
