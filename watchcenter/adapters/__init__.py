"""
Adapters for Disaster Watch alerting.

This module contains the concrete implementations of port interfaces
that handle persistence and notification transports.
"""

from .storage import InMemoryAlertStore, SQLiteAlertStore, SQLiteOutbox
from .channels import EmailChannel, SmsChannel, WebhookChannel, build_channels

__all__ = [
    "InMemoryAlertStore", "SQLiteAlertStore", "SQLiteOutbox",
    "EmailChannel", "SmsChannel", "WebhookChannel", "build_channels",
]
