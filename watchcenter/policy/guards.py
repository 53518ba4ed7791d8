"""
Cooldown and daily quota guards for Disaster Watch alerting.

Both guards read the delivery ledger, which is the only source of
truth for how recently and how often a rule has fired.
"""

from datetime import timedelta
from watchcenter.common.clock import Clock, day_window
from watchcenter.core.models import AlertRule
from watchcenter.ports.store import AlertStorePort
from watchcenter.observability.logging_setup import get_logger

log = get_logger("watchcenter.guards")


class CooldownGuard:
    """규칙 쿨다운 판단"""

    def __init__(self, store: AlertStorePort, clock: Clock):
        self.store = store
        self.clock = clock

    async def in_cooldown(self, rule: AlertRule) -> bool:
        """
        최근 cooldown_minutes 이내에 원장 항목이 있으면 True를 반환합니다.

        Args:
            rule: 대상 규칙

        Returns:
            쿨다운 중 여부
        """
        since = self.clock.now() - timedelta(minutes=rule.cooldown_minutes)
        recent = await self.store.load_deliveries_since(rule.id, since)
        if recent:
            log.info("규칙 쿨다운 중", rule_id=rule.id, rule_name=rule.name, recent=len(recent))
            return True
        return False


class QuotaGuard:
    """일일 발송 한도 판단"""

    def __init__(self, store: AlertStorePort, clock: Clock):
        self.store = store
        self.clock = clock

    async def used_today(self, rule: AlertRule) -> int:
        """로컬 달력 일자 기준 오늘 원장 항목 수를 반환합니다."""
        start, end = day_window(self.clock.now(), self.clock.tz)
        rows = await self.store.load_deliveries_in_range(rule.id, start, end)
        return len(rows)

    async def exhausted(self, rule: AlertRule) -> bool:
        """오늘 발송 수가 max_alerts_per_day 이상이면 True를 반환합니다."""
        used = await self.used_today(rule)
        if used >= rule.max_alerts_per_day:
            log.info("규칙 일일 한도 도달", rule_id=rule.id, rule_name=rule.name,
                     used=used, limit=rule.max_alerts_per_day)
            return True
        return False
