"""
Email channel adapter for Disaster Watch alerting.

The default ``log`` provider writes the message to the log and reports
success. The ``smtp`` provider sends through a plain SMTP relay using
the standard library client in a worker thread.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Optional
from watchcenter.ports.channel import ChannelResult, DeliveryRequest
from watchcenter.settings import SmtpConfig
from watchcenter.observability.logging_setup import get_logger

log = get_logger("watchcenter.channel.email")


class EmailChannel:
    """이메일 채널 어댑터"""

    def __init__(self, provider: str = "log", smtp: Optional[SmtpConfig] = None, timeout: float = 10.0):
        """
        초기화합니다.

        Args:
            provider: 발송 방식 ("log" 또는 "smtp")
            smtp: SMTP 설정 (provider가 smtp일 때 사용)
            timeout: SMTP 연결 타임아웃 (초)
        """
        self.provider = provider
        self.smtp = smtp or SmtpConfig()
        self.timeout = timeout

    async def send(self, request: DeliveryRequest) -> ChannelResult:
        if not request.destination:
            return ChannelResult.failure("no email address on file")

        if self.provider == "smtp":
            try:
                await asyncio.to_thread(self._send_smtp, request)
            except (smtplib.SMTPException, OSError) as e:
                log.error(f"SMTP 발송 실패 to:{request.destination} error:{e}")
                return ChannelResult.failure(f"smtp error: {e}")
            return ChannelResult.success()

        log.info("EMAIL", to=request.destination, subject=request.title, message=request.message)
        return ChannelResult.success()

    def _send_smtp(self, request: DeliveryRequest) -> None:
        msg = EmailMessage()
        msg["From"] = self.smtp.sender
        msg["To"] = request.destination
        msg["Subject"] = request.title
        msg.set_content(request.message)

        with smtplib.SMTP(self.smtp.host, self.smtp.port, timeout=self.timeout) as client:
            if self.smtp.use_tls:
                client.starttls()
            if self.smtp.username:
                client.login(self.smtp.username, self.smtp.password or "")
            client.send_message(msg)
