"""
Port interfaces for Disaster Watch alerting.

This module defines the port interfaces (Protocols) that define
the contracts between the alert engine and external adapters.
"""

from .store import AlertStorePort
from .channel import ChannelAdapter, ChannelResult, DeliveryRequest

__all__ = ["AlertStorePort", "ChannelAdapter", "ChannelResult", "DeliveryRequest"]
