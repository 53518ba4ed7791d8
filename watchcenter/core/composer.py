"""
Alert message composition for Disaster Watch alerting.

This module renders the title and the multi-line message body for a
matched rule and event. Messages are never truncated; length limits
belong to the channel adapters.
"""

from datetime import datetime
from typing import Tuple
from .models import AlertRule, EmergencyEvent

SIGNATURE = "Generated by Disaster Watch Center"


def format_timestamp(ts: datetime) -> str:
    """타임스탬프를 고정 형식 문자열로 변환합니다."""
    text = ts.strftime("%m/%d/%Y, %I:%M:%S %p")
    tzname = ts.tzname()
    return f"{text} {tzname}" if tzname else text


def compose_title(event: EmergencyEvent) -> str:
    return f"{event.type.upper()}: {event.title}"


def compose_message(rule: AlertRule, event: EmergencyEvent) -> str:
    """
    알림 본문을 생성합니다.

    Args:
        rule: 트리거된 규칙
        event: 대상 이벤트

    Returns:
        여러 줄로 구성된 본문
    """
    lines = [
        f"Alert: {event.title}",
        "",
        f"Location: {event.location}",
        f"Severity: {event.severity.upper()}",
        f"Time: {format_timestamp(event.timestamp)}",
        "",
        f"Description: {event.description}",
        "",
        f"Rule: {rule.name}",
        SIGNATURE,
    ]
    return "\n".join(lines)


def compose(rule: AlertRule, event: EmergencyEvent) -> Tuple[str, str]:
    """(title, message)를 반환합니다."""
    return compose_title(event), compose_message(rule, event)
