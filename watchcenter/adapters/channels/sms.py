"""
SMS channel adapter for Disaster Watch alerting.

The default ``log`` provider writes the message to the log. The
``http`` provider posts ``{"to": ..., "body": ...}`` to a gateway URL.
"""

import aiohttp
import asyncio
from typing import Optional
from watchcenter.ports.channel import ChannelResult, DeliveryRequest
from watchcenter.settings import SmsGatewayConfig
from watchcenter.observability.logging_setup import get_logger

log = get_logger("watchcenter.channel.sms")


class SmsChannel:
    """SMS 채널 어댑터"""

    def __init__(self, provider: str = "log", gateway: Optional[SmsGatewayConfig] = None, timeout: float = 10.0):
        self.provider = provider
        self.gateway = gateway or SmsGatewayConfig()
        self.timeout = timeout

    async def send(self, request: DeliveryRequest) -> ChannelResult:
        if not request.destination:
            return ChannelResult.failure("no phone number on file")

        if self.provider == "http":
            return await self._send_http(request)

        log.info("SMS", to=request.destination, message=request.message)
        return ChannelResult.success()

    async def _send_http(self, request: DeliveryRequest) -> ChannelResult:
        if not self.gateway.url:
            return ChannelResult.failure("sms gateway url not configured")

        headers = {"Content-Type": "application/json"}
        if self.gateway.token:
            headers["Authorization"] = f"Bearer {self.gateway.token}"

        try:
            async with aiohttp.ClientSession(
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.post(
                    self.gateway.url,
                    json={"to": request.destination, "body": request.message}
                ) as response:
                    if 200 <= response.status < 300:
                        return ChannelResult.success()
                    return ChannelResult.failure(f"sms gateway returned HTTP {response.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.error(f"SMS 게이트웨이 호출 실패 error:{e}")
            return ChannelResult.failure(f"sms gateway error: {str(e) or type(e).__name__}")
