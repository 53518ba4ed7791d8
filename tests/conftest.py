"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import pytest
import asyncio
import tempfile
import os
from datetime import datetime, timezone
from watchcenter.settings import Settings
from watchcenter.common.clock import FixedClock
from watchcenter.core.models import AlertRule, EmergencyEvent, NotificationSettings
from watchcenter.adapters.storage.memory_store import InMemoryAlertStore
from watchcenter.ports.channel import ChannelResult

# 모든 시간 관련 테스트의 기준 시각 (UTC 정오)
NOW = datetime(2025, 3, 14, 12, 0, 0, tzinfo=timezone.utc)


class RecordingChannel:
    """발송 요청을 기록하는 테스트용 채널"""

    def __init__(self, result: ChannelResult = None, delay: float = 0.0, exc: Exception = None):
        self.result = result or ChannelResult.success()
        self.delay = delay
        self.exc = exc
        self.requests = []

    async def send(self, request):
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self.result


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    yield temp_path
    # 테스트 후 파일 정리
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def sample_settings():
    """테스트용 설정"""
    settings = Settings()
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    settings.observability.http_port = 8080
    return settings


@pytest.fixture
def clock():
    """UTC 기준 고정 시계"""
    return FixedClock(NOW, tz=timezone.utc)


@pytest.fixture
def store():
    """메모리 저장소"""
    return InMemoryAlertStore()


@pytest.fixture
def make_rule():
    """테스트용 규칙 팩토리"""
    def _make(**overrides) -> AlertRule:
        data = {
            "id": "rule-1",
            "user_id": "user-1",
            "name": "Quake watch",
            "alert_type": "earthquake",
            "conditions": [],
            "states": [],
            "cooldown_minutes": 60,
            "max_alerts_per_day": 10,
            "notification_methods": ["email"],
        }
        data.update(overrides)
        return AlertRule(**data)
    return _make


@pytest.fixture
def make_event():
    """테스트용 이벤트 팩토리"""
    def _make(**overrides) -> EmergencyEvent:
        data = {
            "id": "evt-1",
            "type": "earthquake",
            "title": "M6.1 near Ridgecrest",
            "description": "Strong shaking reported",
            "severity": "critical",
            "location": "Ridgecrest, CA",
            "state": "CA",
            "timestamp": NOW,
            "source_data": {"magnitude": 6.1},
        }
        data.update(overrides)
        return EmergencyEvent(**data)
    return _make


@pytest.fixture
def recording_channel():
    """RecordingChannel 팩토리"""
    return RecordingChannel


@pytest.fixture
def email_settings():
    """이메일만 활성화된 사용자 설정"""
    return NotificationSettings(user_id="user-1", email="a@b.com", email_enabled=True)


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "slow: 느린 테스트 마커"
    )
    config.addinivalue_line(
        "markers", "integration: 통합 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 통합 테스트 마커 추가
        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)
