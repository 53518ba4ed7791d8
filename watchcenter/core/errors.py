"""
Domain exceptions for Disaster Watch alerting.
"""


class WatchCenterError(Exception):
    """알림 엔진 기본 예외"""


class RuleNotFoundError(WatchCenterError):
    """규칙을 찾을 수 없음"""

    def __init__(self, rule_id: str):
        super().__init__(f"Alert rule not found: {rule_id}")
        self.rule_id = rule_id


class StoreError(WatchCenterError):
    """규칙/설정/원장 저장소 오류"""


class ChannelError(WatchCenterError):
    """채널 어댑터 전송 오류"""
