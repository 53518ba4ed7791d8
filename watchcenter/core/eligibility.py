"""
Channel eligibility functions for Disaster Watch alerting.

This module decides, from the user's notification settings, whether a
rule's notification method may be used and where it is delivered to.
"""

from typing import Optional
from .models import AlertRule, NotificationSettings


def is_method_enabled(method: str, settings: Optional[NotificationSettings], rule: AlertRule) -> bool:
    """
    알림 수단 사용 가능 여부를 판단합니다.

    설정이 아예 없는 사용자는 email만 허용합니다.

    Args:
        method: 알림 수단 ("email" | "sms" | "webhook")
        settings: 사용자 알림 설정 (없으면 None)
        rule: 알림 규칙

    Returns:
        사용 가능 여부
    """
    if settings is None:
        return method == "email"

    if method == "email":
        return settings.email_enabled and bool(settings.email)
    if method == "sms":
        return settings.sms_enabled and bool(settings.phone_number)
    if method == "webhook":
        return settings.webhook_enabled and bool(rule.webhook_url)
    return False


def destination_for(method: str, settings: Optional[NotificationSettings], rule: AlertRule) -> Optional[str]:
    """알림 수단별 수신처를 반환합니다."""
    if method == "webhook":
        return rule.webhook_url
    if settings is None:
        return None
    if method == "email":
        return settings.email
    if method == "sms":
        return settings.phone_number
    return None
