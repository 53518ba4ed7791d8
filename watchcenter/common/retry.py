"""
Retry utilities for Disaster Watch alerting.

This module provides backoff helpers used by the optional
delivery retry outbox.
"""

import random


def compute_backoff(attempt: int, base: float, max_delay: float, jitter: bool = False) -> float:
    """
    지수 백오프 지연 시간을 계산합니다.

    Args:
        attempt: 현재 시도 횟수 (1부터 시작)
        base: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)
        jitter: 지터 적용 여부

    Returns:
        지연 시간 (초)
    """
    delay = min(max_delay, base * (2 ** max(0, attempt - 1)))
    if jitter:
        delay = delay * (0.5 + random.random() * 0.5)
    return delay
