"""
Notification channel adapters for Disaster Watch alerting.
"""

from typing import Dict
from watchcenter.core.errors import ChannelError
from watchcenter.ports.channel import ChannelAdapter
from watchcenter.settings import DispatchConfig
from .email import EmailChannel
from .sms import SmsChannel
from .webhook import WebhookChannel

EMAIL_PROVIDERS = ("log", "smtp")
SMS_PROVIDERS = ("log", "http")


def build_channels(config: DispatchConfig) -> Dict[str, ChannelAdapter]:
    """
    설정에 따라 알림 수단별 채널 어댑터를 생성합니다.

    Args:
        config: 발송 설정

    Returns:
        알림 수단 → 채널 어댑터 매핑

    Raises:
        ChannelError: 알 수 없는 provider가 지정된 경우
    """
    if config.email_provider not in EMAIL_PROVIDERS:
        raise ChannelError(f"unknown email provider: {config.email_provider}")
    if config.sms_provider not in SMS_PROVIDERS:
        raise ChannelError(f"unknown sms provider: {config.sms_provider}")

    timeout = config.channel_timeout_sec
    return {
        "email": EmailChannel(config.email_provider, config.smtp, timeout=timeout),
        "sms": SmsChannel(config.sms_provider, config.sms_gateway, timeout=timeout),
        "webhook": WebhookChannel(timeout=timeout),
    }


__all__ = ["EmailChannel", "SmsChannel", "WebhookChannel", "build_channels"]
