"""
Rule, settings and delivery ledger store port interface.

This module defines the protocol for the durable store that owns alert
rules, notification settings and the append-only delivery ledger.
"""

from datetime import datetime
from typing import List, Optional, Protocol
from watchcenter.core.models import AlertDelivery, AlertRule, DeliveryStatus, NotificationSettings


class AlertStorePort(Protocol):
    """규칙/설정/원장 저장소 포트 인터페이스"""

    async def load_active_rules(self, alert_type: str) -> List[AlertRule]:
        """
        이벤트 유형에 해당하는 활성 규칙을 조회합니다.

        Args:
            alert_type: 이벤트 유형

        Returns:
            활성 규칙 목록
        """
        ...

    async def load_rule(self, rule_id: str) -> Optional[AlertRule]:
        """규칙 하나를 조회합니다. 없으면 None."""
        ...

    async def load_deliveries_since(self, rule_id: str, since: datetime) -> List[AlertDelivery]:
        """
        since 이후(포함)에 생성된 규칙의 원장 항목을 조회합니다.

        Args:
            rule_id: 규칙 ID
            since: 기준 시각

        Returns:
            원장 항목 목록
        """
        ...

    async def load_deliveries_in_range(self, rule_id: str, start: datetime, end: datetime) -> List[AlertDelivery]:
        """[start, end) 구간에 생성된 규칙의 원장 항목을 조회합니다."""
        ...

    async def load_settings(self, user_id: str) -> Optional[NotificationSettings]:
        """사용자 알림 설정을 조회합니다. 없으면 None."""
        ...

    async def insert_delivery(self, delivery: AlertDelivery) -> str:
        """
        원장 항목을 추가합니다.

        Args:
            delivery: 추가할 항목 (보통 pending 상태)

        Returns:
            생성된 항목 ID
        """
        ...

    async def update_delivery_status(self,
                                     delivery_id: str,
                                     status: DeliveryStatus,
                                     delivered_at: Optional[datetime] = None,
                                     error_message: Optional[str] = None) -> None:
        """
        pending 항목의 최종 상태를 기록합니다.

        Args:
            delivery_id: 항목 ID
            status: 최종 상태 ("sent" | "failed")
            delivered_at: 발송 완료 시각
            error_message: 실패 사유
        """
        ...

    async def list_deliveries(self, user_id: str, limit: int = 50) -> List[AlertDelivery]:
        """사용자의 최근 원장 항목을 최신순으로 조회합니다."""
        ...
