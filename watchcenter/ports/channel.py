"""
Channel adapter port interface.

This module defines the protocol implemented by the email, SMS and
webhook transports, together with the request and result types that
flow through it.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol
from watchcenter.core.models import AlertRule, EmergencyEvent


@dataclass(frozen=True)
class DeliveryRequest:
    """채널 발송 요청"""
    method: str
    destination: Optional[str]
    title: str
    message: str
    rule: AlertRule
    event: EmergencyEvent

    def to_payload(self) -> Dict[str, Any]:
        """재시도 Outbox 저장용 JSON 직렬화"""
        return {
            "method": self.method,
            "destination": self.destination,
            "title": self.title,
            "message": self.message,
            "rule": self.rule.model_dump(mode="json", by_alias=True),
            "event": self.event.model_dump(mode="json", by_alias=True),
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "DeliveryRequest":
        return cls(
            method=payload["method"],
            destination=payload.get("destination"),
            title=payload["title"],
            message=payload["message"],
            rule=AlertRule.model_validate(payload["rule"]),
            event=EmergencyEvent.model_validate(payload["event"]),
        )


@dataclass(frozen=True)
class ChannelResult:
    """채널 발송 결과"""
    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "ChannelResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str) -> "ChannelResult":
        return cls(ok=False, error=error)


class ChannelAdapter(Protocol):
    """채널 어댑터 포트 인터페이스"""

    async def send(self, request: DeliveryRequest) -> ChannelResult:
        """
        알림을 발송합니다.

        전송 오류는 예외 대신 실패 결과로 반환하는 것을 원칙으로 합니다.

        Args:
            request: 발송 요청

        Returns:
            발송 결과
        """
        ...
