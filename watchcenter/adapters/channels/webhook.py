"""
Webhook channel adapter for Disaster Watch alerting.

Posts the rule, the event and the composed alert as JSON to the rule's
webhook URL. Any 2xx response counts as delivered.
"""

import aiohttp
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict
from watchcenter.ports.channel import ChannelResult, DeliveryRequest
from watchcenter.observability.logging_setup import get_logger

log = get_logger("watchcenter.channel.webhook")


def build_payload(request: DeliveryRequest) -> Dict[str, Any]:
    """
    웹훅 본문을 생성합니다.

    Args:
        request: 발송 요청

    Returns:
        {rule, event, title, message, timestamp} 형태의 JSON 객체
    """
    return {
        "rule": request.rule.model_dump(mode="json", by_alias=True),
        "event": request.event.model_dump(mode="json", by_alias=True),
        "title": request.title,
        "message": request.message,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


class WebhookChannel:
    """웹훅 채널 어댑터"""

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    async def send(self, request: DeliveryRequest) -> ChannelResult:
        url = request.destination
        if not url:
            return ChannelResult.failure("no webhook url on rule")

        try:
            async with aiohttp.ClientSession(
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.post(url, json=build_payload(request)) as response:
                    if 200 <= response.status < 300:
                        return ChannelResult.success()
                    log.warning(f"웹훅 응답 오류 url:{url} status:{response.status}")
                    return ChannelResult.failure(f"webhook returned HTTP {response.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.error(f"웹훅 호출 실패 url:{url} error:{e}")
            return ChannelResult.failure(f"webhook error: {str(e) or type(e).__name__}")
