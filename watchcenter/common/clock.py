"""
Clock utilities for Disaster Watch alerting.

This module provides the time source used by cooldown and quota checks,
including the local calendar-day window used for daily quotas.
"""

from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Protocol, Tuple
from zoneinfo import ZoneInfo


def resolve_tz(name: Optional[str]) -> Optional[tzinfo]:
    """타임존 이름을 tzinfo로 변환합니다. None이면 서버 로컬 타임존을 사용합니다."""
    return ZoneInfo(name) if name else None


def day_window(at: datetime, tz: Optional[tzinfo] = None) -> Tuple[datetime, datetime]:
    """
    주어진 시각이 속한 로컬 달력 일자의 [자정, 다음 자정) 구간을 반환합니다.

    Args:
        at: 기준 시각 (timezone-aware)
        tz: 로컬 타임존 (None이면 서버 로컬)

    Returns:
        (시작, 끝) UTC datetime 튜플
    """
    day = at.astimezone(tz).date()
    # 서버 로컬은 naive 자정으로 두고 변환 시점의 오프셋을 다시 해석 (DST 전환일)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


class Clock(Protocol):
    """시간 소스 인터페이스"""

    tz: Optional[tzinfo]

    def now(self) -> datetime:
        ...


class SystemClock:
    """시스템 시계"""

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """고정 시각 시계 (테스트/재현용)"""

    def __init__(self, now: datetime, tz: Optional[tzinfo] = None):
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        self._now = now
        self.tz = tz

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now if now.tzinfo else now.replace(tzinfo=timezone.utc)

    def advance(self, **kwargs) -> datetime:
        """timedelta 인자만큼 시계를 진행합니다."""
        self._now = self._now + timedelta(**kwargs)
        return self._now
