"""
Delivery dispatch for Disaster Watch alerting.

For every notification method of an admitted rule the dispatcher
checks channel eligibility, writes a pending ledger row, invokes the
channel adapter under a bounded timeout and records the terminal
status. Channel failures are recorded, never raised.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional
from watchcenter.common.clock import Clock
from watchcenter.core.eligibility import destination_for, is_method_enabled
from watchcenter.core.models import AlertDelivery, AlertRule, EmergencyEvent, NotificationSettings
from watchcenter.ports.channel import ChannelAdapter, ChannelResult, DeliveryRequest
from watchcenter.ports.store import AlertStorePort
from watchcenter.observability import metrics
from watchcenter.observability.logging_setup import get_logger

if TYPE_CHECKING:
    from watchcenter.adapters.storage.sqlite_outbox import SQLiteOutbox

log = get_logger("watchcenter.dispatch")


@dataclass
class Reservation:
    """pending 원장 항목과 그에 대응하는 발송 요청"""
    delivery_id: str
    request: DeliveryRequest


class DeliveryDispatcher:
    """알림 발송 디스패처"""

    def __init__(self,
                 store: AlertStorePort,
                 channels: Dict[str, ChannelAdapter],
                 clock: Clock,
                 *,
                 timeout_sec: float = 10.0,
                 outbox: Optional["SQLiteOutbox"] = None):
        """
        초기화합니다.

        Args:
            store: 원장 저장소
            channels: 알림 수단 → 채널 어댑터
            clock: 시간 소스
            timeout_sec: 채널 호출당 타임아웃 (초)
            outbox: 실패 발송 재시도 Outbox (None이면 재시도 없음)
        """
        self.store = store
        self.channels = channels
        self.clock = clock
        self.timeout_sec = timeout_sec
        self.outbox = outbox

    async def dispatch(self,
                       rule: AlertRule,
                       event: EmergencyEvent,
                       title: str,
                       message: str,
                       settings: Optional[NotificationSettings]) -> None:
        """승인된 규칙의 모든 알림 수단으로 발송합니다."""
        reservations = await self.reserve(rule, event, title, message, settings)
        await self.deliver(reservations)

    async def reserve(self,
                      rule: AlertRule,
                      event: EmergencyEvent,
                      title: str,
                      message: str,
                      settings: Optional[NotificationSettings]) -> List[Reservation]:
        """
        사용 가능한 알림 수단마다 pending 원장 항목을 생성합니다.

        Args:
            rule: 승인된 규칙
            event: 대상 이벤트
            title: 알림 제목
            message: 알림 본문
            settings: 사용자 알림 설정 (없으면 None)

        Returns:
            생성된 예약 목록
        """
        reservations: List[Reservation] = []

        for method in rule.notification_methods:
            if not is_method_enabled(method, settings, rule):
                log.debug("알림 수단 건너뜀 (비활성)", rule_id=rule.id, method=method)
                continue

            request = DeliveryRequest(
                method=method,
                destination=destination_for(method, settings, rule),
                title=title,
                message=message,
                rule=rule,
                event=event,
            )

            try:
                delivery_id = await self.store.insert_delivery(self._pending_row(request))
            except Exception:
                log.exception("원장 항목 생성 실패", rule_id=rule.id, method=method)
                metrics.ledger_errors.labels(operation="insert").inc()
                continue

            reservations.append(Reservation(delivery_id=delivery_id, request=request))

        return reservations

    async def deliver(self, reservations: List[Reservation]) -> None:
        """예약된 발송을 채널별로 독립 실행합니다."""
        if not reservations:
            return
        await asyncio.gather(*(self._deliver_one(r) for r in reservations))

    async def redeliver(self, request: DeliveryRequest) -> ChannelResult:
        """
        재시도 발송을 수행합니다.

        재시도도 발송 시도이므로 새 원장 항목을 생성합니다.
        실패해도 Outbox에 다시 넣지 않습니다.
        """
        delivery_id = await self.store.insert_delivery(self._pending_row(request))
        return await self._deliver_one(Reservation(delivery_id, request), enqueue_on_failure=False)

    def _pending_row(self, request: DeliveryRequest) -> AlertDelivery:
        event = request.event
        return AlertDelivery(
            alert_rule_id=request.rule.id,
            user_id=request.rule.user_id,
            title=request.title,
            message=request.message,
            severity=event.severity,
            alert_type=event.type,
            source_data=event.source_data,
            location=event.location,
            coordinates=event.coordinates,
            delivery_method=request.method,
            delivery_status="pending",
            created_at=self.clock.now(),
        )

    async def _send(self, request: DeliveryRequest) -> ChannelResult:
        adapter = self.channels.get(request.method)
        if adapter is None:
            return ChannelResult.failure(f"no channel adapter for method: {request.method}")

        try:
            return await asyncio.wait_for(adapter.send(request), timeout=self.timeout_sec)
        except asyncio.TimeoutError:
            return ChannelResult.failure(f"{request.method} channel timed out after {self.timeout_sec}s")
        except Exception as e:
            return ChannelResult.failure(str(e) or type(e).__name__)

    async def _deliver_one(self, reservation: Reservation, enqueue_on_failure: bool = True) -> ChannelResult:
        request = reservation.request
        t0 = time.perf_counter()
        result = await self._send(request)
        metrics.channel_seconds.labels(method=request.method).observe(time.perf_counter() - t0)

        try:
            if result.ok:
                await self.store.update_delivery_status(
                    reservation.delivery_id, "sent", delivered_at=self.clock.now()
                )
            else:
                await self.store.update_delivery_status(
                    reservation.delivery_id, "failed",
                    error_message=result.error or "delivery failed"
                )
        except Exception:
            log.exception("원장 상태 갱신 실패", delivery_id=reservation.delivery_id)
            metrics.ledger_errors.labels(operation="update").inc()

        status = "sent" if result.ok else "failed"
        metrics.deliveries.labels(method=request.method, status=status).inc()

        if result.ok:
            log.info("알림 발송됨", method=request.method, rule_id=request.rule.id,
                     user_id=request.rule.user_id, delivery_id=reservation.delivery_id)
        else:
            log.warning("알림 발송 실패", method=request.method, rule_id=request.rule.id,
                        user_id=request.rule.user_id, delivery_id=reservation.delivery_id,
                        error=result.error)
            if enqueue_on_failure and self.outbox is not None:
                await self._enqueue_retry(reservation)

        return result

    async def _enqueue_retry(self, reservation: Reservation) -> None:
        try:
            await self.outbox.enqueue(
                reservation.delivery_id,
                reservation.request.method,
                reservation.request.to_payload()
            )
            metrics.outbox_enqueued.labels(method=reservation.request.method).inc()
        except Exception:
            log.exception("재시도 Outbox 추가 실패", delivery_id=reservation.delivery_id)
