"""
Delivery retry worker for Disaster Watch alerting.

Optional extension on top of the baseline dispatcher: drains the
SQLite outbox of failed deliveries and retries them with exponential
backoff. A failed item is rescheduled on its own row, so it never holds
up the items queued behind it; an item whose payload cannot be decoded
is dropped. Each retry appends a new ledger row, so retries count toward
cooldown and daily quota like any other delivery attempt.
"""

import asyncio
from typing import Optional
from watchcenter.adapters.storage.sqlite_outbox import OutboxItem, SQLiteOutbox
from watchcenter.common.retry import compute_backoff
from watchcenter.dispatch.dispatcher import DeliveryDispatcher
from watchcenter.ports.channel import ChannelResult, DeliveryRequest
from watchcenter.observability import metrics
from watchcenter.observability.logging_setup import get_logger

log = get_logger("watchcenter.retry")


class OutboxRetryWorker:
    """실패 발송 재시도 워커 (Outbox 패턴)"""

    def __init__(self,
                 outbox: SQLiteOutbox,
                 dispatcher: DeliveryDispatcher,
                 *,
                 max_retries: int = 5,
                 backoff_initial: float = 1.0,
                 backoff_max: float = 60.0,
                 poll_interval: float = 1.0):
        """
        초기화합니다.

        Args:
            outbox: 재시도 Outbox
            dispatcher: 재발송에 사용할 디스패처
            max_retries: 항목당 최대 재시도 횟수
            backoff_initial: 초기 백오프 시간
            backoff_max: 최대 백오프 시간
            poll_interval: 빈 Outbox 폴링 주기
        """
        self.outbox = outbox
        self.dispatcher = dispatcher
        self.max_retries = max_retries
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self.poll_interval = poll_interval
        self._running = False

    async def start(self) -> None:
        """재시도 워커를 시작합니다."""
        self._running = True
        log.info("재시도 워커 시작됨")

        while self._running:
            try:
                processed = await self.process_once()
                metrics.outbox_size.set(await self.outbox.get_count())
                if not processed:
                    await asyncio.sleep(self.poll_interval)
            except Exception as e:
                log.error(f"Outbox 처리 오류: {e}")
                await asyncio.sleep(5)  # 오류 시 5초 대기

    def stop(self) -> None:
        """재시도 워커를 중지합니다."""
        self._running = False

    async def process_once(self) -> bool:
        """
        가장 오래된 항목 하나를 처리합니다.

        Returns:
            처리한 항목이 있으면 True
        """
        item = await self.outbox.peek_oldest()
        if not item:
            return False

        # 최대 재시도 횟수 확인
        if item.attempts >= self.max_retries:
            log.warning("최대 재시도 횟수 초과, 항목 삭제", outbox_id=item.id,
                        delivery_id=item.delivery_id, method=item.method)
            await self.outbox.delete(item.id)
            return True

        request = self._decode(item)
        if request is None:
            await self.outbox.delete(item.id)
            return True

        try:
            result = await self.dispatcher.redeliver(request)
        except Exception as e:
            log.exception("재시도 발송 중 오류", outbox_id=item.id, delivery_id=item.delivery_id)
            result = ChannelResult.failure(f"redeliver error: {str(e) or type(e).__name__}")

        if result.ok:
            await self.outbox.delete(item.id)
            log.info("재시도 발송 성공", outbox_id=item.id, delivery_id=item.delivery_id,
                     attempts=item.attempts + 1)
            return True

        # 워커를 멈추지 않고 항목에 다음 재시도 시각을 기록
        delay = compute_backoff(item.attempts + 1, self.backoff_initial, self.backoff_max)
        log.warning("재시도 발송 실패", outbox_id=item.id, delivery_id=item.delivery_id,
                    error=result.error, retry_in=delay)
        await self.outbox.mark_attempt(item.id, delay)
        return True

    def _decode(self, item: OutboxItem) -> Optional[DeliveryRequest]:
        """저장된 페이로드를 발송 요청으로 복원합니다. 해석할 수 없으면 None."""
        try:
            return DeliveryRequest.from_payload(item.payload)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            log.error("재시도 항목 해석 실패, 항목 삭제", outbox_id=item.id,
                      delivery_id=item.delivery_id, error=f"{type(e).__name__}: {e}")
            return None
