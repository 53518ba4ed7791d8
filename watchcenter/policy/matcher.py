"""
Rule admission for Disaster Watch alerting.

RuleMatcher composes the activity/type check, the geographic filter,
the cooldown and quota guards and the condition evaluator into one
admit/reject decision. Any error fails closed.
"""

from dataclasses import dataclass
from watchcenter.common.clock import Clock
from watchcenter.core.conditions import evaluate_all
from watchcenter.core.models import AlertRule, EmergencyEvent
from watchcenter.ports.store import AlertStorePort
from watchcenter.policy.guards import CooldownGuard, QuotaGuard
from watchcenter.observability import metrics
from watchcenter.observability.logging_setup import get_logger

log = get_logger("watchcenter.matcher")


@dataclass
class Decision:
    admitted: bool
    reason: str


class RuleMatcher:
    """규칙 승인 판단기"""

    def __init__(self, store: AlertStorePort, clock: Clock):
        """
        초기화합니다.

        Args:
            store: 원장 조회용 저장소
            clock: 시간 소스
        """
        self.cooldown = CooldownGuard(store, clock)
        self.quota = QuotaGuard(store, clock)

    async def admit(self, rule: AlertRule, event: EmergencyEvent) -> bool:
        """규칙이 이벤트에 대해 발송되어야 하면 True를 반환합니다."""
        decision = await self.decide(rule, event)
        return decision.admitted

    async def decide(self, rule: AlertRule, event: EmergencyEvent) -> Decision:
        """
        규칙을 평가하고 사유와 함께 결과를 반환합니다.

        순서: 활성/유형 → 지역 → 쿨다운 → 일일 한도 → 조건.

        Args:
            rule: 평가할 규칙
            event: 대상 이벤트

        Returns:
            승인 여부와 사유
        """
        try:
            decision = await self._decide(rule, event)
        except Exception:
            log.exception("규칙 평가 오류, 발송하지 않음", rule_id=getattr(rule, "id", None),
                          event_id=getattr(event, "id", None))
            metrics.rule_errors.inc()
            decision = Decision(False, "error")

        metrics.rules_evaluated.labels(
            admitted=str(decision.admitted).lower(),
            reason=decision.reason
        ).inc()
        return decision

    async def _decide(self, rule: AlertRule, event: EmergencyEvent) -> Decision:
        if not rule.is_active:
            return Decision(False, "inactive")
        if rule.alert_type != event.type:
            return Decision(False, "type_mismatch")

        if rule.states:
            if not event.state or event.state not in rule.states:
                return Decision(False, "outside_states")

        if await self.cooldown.in_cooldown(rule):
            return Decision(False, "cooldown")

        if await self.quota.exhausted(rule):
            return Decision(False, "daily_limit")

        if not evaluate_all(rule.conditions, event):
            return Decision(False, "conditions")

        return Decision(True, "ok")
