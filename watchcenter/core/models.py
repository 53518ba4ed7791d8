"""
Core domain models for Disaster Watch alerting.

This module defines the event, rule, notification settings and
delivery ledger models using Pydantic v2 for type safety and validation.
Every model accepts both camelCase (wire) and snake_case (Python) names.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# 심각도 타입 정의 (낮음 -> 높음)
Severity = Literal["low", "medium", "high", "critical"]

DeliveryStatus = Literal["pending", "sent", "failed"]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """naive datetime은 UTC로 간주합니다."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    """camelCase 별칭을 사용하는 기본 모델"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinates(CamelModel):
    """위경도 좌표"""
    lat: float
    lng: float


class EmergencyEvent(CamelModel):
    """정규화된 재난/기상 이벤트 (불변)"""
    model_config = ConfigDict(frozen=True)

    id: str
    type: str  # weather | wildfire | earthquake | disaster | air_quality (확장 가능)
    title: str
    description: str = ""
    severity: Severity
    location: str = ""
    state: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    timestamp: datetime
    source_data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("source_data", mode="before")
    @classmethod
    def _none_source_data(cls, v):
        return {} if v is None else v


class AlertCondition(CamelModel):
    """규칙 조건 (값 객체)"""
    field: str
    operator: str
    value: Any = None
    threshold: Optional[float] = None


class AlertRule(CamelModel):
    """사용자 소유 알림 규칙"""
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    alert_type: str
    conditions: List[AlertCondition] = Field(default_factory=list)
    states: List[str] = Field(default_factory=list)
    cooldown_minutes: int = 60
    max_alerts_per_day: int = 10
    notification_methods: List[str] = Field(default_factory=lambda: ["email"])
    webhook_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("conditions", "states", "notification_methods", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return [] if v is None else v


class NotificationSettings(CamelModel):
    """사용자별 채널 활성화 및 수신처"""
    user_id: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    email_enabled: bool = True
    sms_enabled: bool = False
    webhook_enabled: bool = False
    quiet_hours_enabled: bool = False
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    timezone: str = "America/New_York"


class AlertDelivery(CamelModel):
    """발송 원장 항목 (rule, event, channel 단위 1건)"""
    id: Optional[str] = None
    alert_rule_id: str
    user_id: str
    title: str
    message: str
    severity: str
    alert_type: str
    source_data: Dict[str, Any] = Field(default_factory=dict)
    location: str = ""
    coordinates: Optional[Coordinates] = None
    delivery_method: str
    delivery_status: DeliveryStatus = "pending"
    created_at: datetime
    delivered_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @field_validator("created_at", "delivered_at")
    @classmethod
    def _utc(cls, v):
        return _as_utc(v)

    @field_validator("source_data", mode="before")
    @classmethod
    def _none_source_data(cls, v):
        return {} if v is None else v
