"""
Alert engine for Disaster Watch alerting.

This module implements the event-processing entry point: it loads the
candidate rules for an event, admits each one under its per-rule lock,
composes the alert, reserves ledger rows and delivers them.
"""

import time
from typing import List, Optional
from watchcenter.common.clock import Clock, SystemClock
from watchcenter.core.composer import compose
from watchcenter.core.errors import RuleNotFoundError
from watchcenter.core.models import AlertDelivery, AlertRule, EmergencyEvent
from watchcenter.dispatch.dispatcher import DeliveryDispatcher, Reservation
from watchcenter.policy.admission import AdmissionLocks
from watchcenter.policy.matcher import RuleMatcher
from watchcenter.ports.store import AlertStorePort
from watchcenter.observability import metrics
from watchcenter.observability.logging_setup import get_logger

log = get_logger("watchcenter.engine")


class AlertEngine:
    """재난 이벤트 알림 엔진"""

    def __init__(self,
                 store: AlertStorePort,
                 dispatcher: DeliveryDispatcher,
                 matcher: Optional[RuleMatcher] = None,
                 *,
                 clock: Optional[Clock] = None,
                 locks: Optional[AdmissionLocks] = None):
        """
        초기화합니다.

        Args:
            store: 규칙/설정/원장 저장소
            dispatcher: 발송 디스패처
            matcher: 규칙 승인 판단기 (None이면 store/clock으로 생성)
            clock: 시간 소스 (None이면 dispatcher의 clock 사용)
            locks: 규칙별 승인 락 (None이면 새로 생성)
        """
        self.store = store
        self.dispatcher = dispatcher
        self.clock = clock or getattr(dispatcher, "clock", None) or SystemClock()
        self.matcher = matcher or RuleMatcher(store, self.clock)
        self.locks = locks or AdmissionLocks()

    async def process_event(self, event: EmergencyEvent) -> None:
        """
        이벤트를 처리합니다.

        정상적인 이벤트에 대해서는 예외를 발생시키지 않습니다.
        최악의 경우 승인된 규칙과 발송이 0건일 뿐입니다.

        Args:
            event: 정규화된 재난 이벤트
        """
        t0 = time.perf_counter()
        metrics.events_received.labels(event_type=event.type).inc()

        try:
            rules = await self.store.load_active_rules(event.type)
        except Exception:
            log.exception("후보 규칙 조회 실패", event_id=event.id, event_type=event.type)
            metrics.process_event_seconds.observe(time.perf_counter() - t0)
            return

        log.debug(f"후보 규칙 {len(rules)}개", event_id=event.id, event_type=event.type)

        for rule in rules:
            try:
                await self._process_rule(rule, event)
            except Exception:
                log.exception("규칙 처리 오류", rule_id=rule.id, event_id=event.id)

        metrics.process_event_seconds.observe(time.perf_counter() - t0)

    async def _process_rule(self, rule: AlertRule, event: EmergencyEvent) -> None:
        # 승인 판단과 pending 행 생성은 같은 락 안에서 수행
        async with self.locks.hold(rule.id):
            if not await self.matcher.admit(rule, event):
                return

            title, message = compose(rule, event)
            settings = await self._load_settings(rule)
            reservations: List[Reservation] = await self.dispatcher.reserve(
                rule, event, title, message, settings
            )

        log.info("규칙 승인됨", rule_id=rule.id, user_id=rule.user_id,
                 event_id=event.id, deliveries=len(reservations))
        await self.dispatcher.deliver(reservations)

    async def _load_settings(self, rule: AlertRule):
        try:
            return await self.store.load_settings(rule.user_id)
        except Exception:
            # 설정 조회 실패 시 설정 없음과 동일하게 처리 (이메일만)
            log.exception("알림 설정 조회 실패", user_id=rule.user_id)
            return None

    async def test_alert(self, rule_id: str, event: EmergencyEvent) -> bool:
        """
        규칙이 이벤트에 대해 승인되는지 확인합니다 (발송하지 않음).

        Args:
            rule_id: 규칙 ID
            event: 시험용 이벤트

        Returns:
            승인 여부

        Raises:
            RuleNotFoundError: 규칙이 없는 경우
        """
        rule = await self.store.load_rule(rule_id)
        if rule is None:
            raise RuleNotFoundError(rule_id)
        return await self.matcher.admit(rule, event)

    async def history(self, user_id: str, limit: int = 50) -> List[AlertDelivery]:
        """사용자의 최근 발송 원장을 최신순으로 반환합니다."""
        return await self.store.list_deliveries(user_id, limit)
