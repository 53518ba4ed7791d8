"""
In-memory alert store for Disaster Watch alerting.

This module implements AlertStorePort in process memory. It is used
for tests and dry runs; every operation yields to the event loop like
a real I/O-backed store would.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Dict, List, Optional
from watchcenter.core.errors import StoreError
from watchcenter.core.models import AlertDelivery, AlertRule, DeliveryStatus, NotificationSettings


class InMemoryAlertStore:
    """메모리 기반 규칙/설정/원장 저장소"""

    def __init__(self):
        self.rules: Dict[str, AlertRule] = {}
        self.settings: Dict[str, NotificationSettings] = {}
        self.deliveries: Dict[str, AlertDelivery] = {}

    async def upsert_rule(self, rule: AlertRule) -> None:
        await asyncio.sleep(0)
        self.rules[rule.id] = rule

    async def delete_rule(self, rule_id: str) -> None:
        await asyncio.sleep(0)
        self.rules.pop(rule_id, None)

    async def upsert_settings(self, settings: NotificationSettings) -> None:
        await asyncio.sleep(0)
        self.settings[settings.user_id] = settings

    async def load_active_rules(self, alert_type: str) -> List[AlertRule]:
        await asyncio.sleep(0)
        return [r for r in self.rules.values() if r.is_active and r.alert_type == alert_type]

    async def load_rule(self, rule_id: str) -> Optional[AlertRule]:
        await asyncio.sleep(0)
        return self.rules.get(rule_id)

    async def load_deliveries_since(self, rule_id: str, since: datetime) -> List[AlertDelivery]:
        await asyncio.sleep(0)
        return [d for d in self.deliveries.values()
                if d.alert_rule_id == rule_id and d.created_at >= since]

    async def load_deliveries_in_range(self, rule_id: str, start: datetime, end: datetime) -> List[AlertDelivery]:
        await asyncio.sleep(0)
        return [d for d in self.deliveries.values()
                if d.alert_rule_id == rule_id and start <= d.created_at < end]

    async def load_settings(self, user_id: str) -> Optional[NotificationSettings]:
        await asyncio.sleep(0)
        return self.settings.get(user_id)

    async def insert_delivery(self, delivery: AlertDelivery) -> str:
        await asyncio.sleep(0)
        delivery_id = delivery.id or uuid.uuid4().hex
        if delivery_id in self.deliveries:
            raise StoreError(f"delivery already exists: {delivery_id}")
        self.deliveries[delivery_id] = delivery.model_copy(update={"id": delivery_id})
        return delivery_id

    async def update_delivery_status(self,
                                     delivery_id: str,
                                     status: DeliveryStatus,
                                     delivered_at: Optional[datetime] = None,
                                     error_message: Optional[str] = None) -> None:
        await asyncio.sleep(0)
        current = self.deliveries.get(delivery_id)
        if current is None or current.delivery_status != "pending":
            raise StoreError(f"no pending delivery: {delivery_id}")
        self.deliveries[delivery_id] = current.model_copy(update={
            "delivery_status": status,
            "delivered_at": delivered_at,
            "error_message": error_message,
        })

    async def list_deliveries(self, user_id: str, limit: int = 50) -> List[AlertDelivery]:
        await asyncio.sleep(0)
        rows = [d for d in self.deliveries.values() if d.user_id == user_id]
        rows.sort(key=lambda d: d.created_at, reverse=True)
        return rows[:limit]
