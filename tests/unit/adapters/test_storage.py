"""
Storage Adapter 모듈 단위 테스트

이 모듈은 SQLite 기반 규칙/설정/원장 저장소와 재시도 Outbox,
그리고 메모리 저장소의 기능을 테스트합니다.
"""

import pytest
import os
import time
from datetime import datetime, timedelta, timezone

from watchcenter.adapters.storage.memory_store import InMemoryAlertStore
from watchcenter.adapters.storage.sqlite_outbox import SQLiteOutbox
from watchcenter.adapters.storage.sqlite_store import SQLiteAlertStore
from watchcenter.core.errors import StoreError
from watchcenter.core.models import AlertCondition, AlertDelivery, Coordinates, NotificationSettings

T0 = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


def _delivery(rule_id="rule-1", user_id="user-1", at=T0, **overrides) -> AlertDelivery:
    data = dict(alert_rule_id=rule_id, user_id=user_id, title="T", message="M", severity="high",
                alert_type="earthquake", delivery_method="email", created_at=at)
    data.update(overrides)
    return AlertDelivery(**data)


class TestSQLiteAlertStore:
    """SQLite 저장소 테스트"""

    @pytest.fixture
    async def sqlite_store(self, temp_db_path):
        """초기화된 SQLite 저장소"""
        s = SQLiteAlertStore(temp_db_path)
        await s.init()
        return s

    @pytest.mark.asyncio
    async def test_init_schema(self, sqlite_store):
        """스키마 초기화"""
        assert os.path.exists(sqlite_store.path)
        # 두 번 초기화해도 안전
        await sqlite_store.init()

    @pytest.mark.asyncio
    async def test_rule_round_trip(self, sqlite_store, make_rule):
        """규칙 저장/조회"""
        rule = make_rule(
            conditions=[AlertCondition(field="sourceData.magnitude", operator="greater_than", value=5.0)],
            states=["CA", "NV"],
            notification_methods=["email", "webhook"],
            webhook_url="https://hook.example/x",
        )
        await sqlite_store.upsert_rule(rule)

        loaded = await sqlite_store.load_rule("rule-1")
        assert loaded == rule
        assert await sqlite_store.load_rule("missing") is None

    @pytest.mark.asyncio
    async def test_load_active_rules_filters(self, sqlite_store, make_rule):
        """활성 + 유형 일치 규칙만 조회"""
        await sqlite_store.upsert_rule(make_rule(id="a"))
        await sqlite_store.upsert_rule(make_rule(id="b", is_active=False))
        await sqlite_store.upsert_rule(make_rule(id="c", alert_type="wildfire"))

        rules = await sqlite_store.load_active_rules("earthquake")
        assert [r.id for r in rules] == ["a"]

        await sqlite_store.delete_rule("a")
        assert await sqlite_store.load_active_rules("earthquake") == []

    @pytest.mark.asyncio
    async def test_settings_round_trip(self, sqlite_store):
        """알림 설정 저장/조회"""
        settings = NotificationSettings(user_id="user-1", email="a@b.com", sms_enabled=True,
                                        phone_number="+15551234567", quiet_hours_enabled=True,
                                        quiet_hours_start="22:00", quiet_hours_end="07:00")
        await sqlite_store.upsert_settings(settings)

        assert await sqlite_store.load_settings("user-1") == settings
        assert await sqlite_store.load_settings("nobody") is None

    @pytest.mark.asyncio
    async def test_delivery_insert_and_update(self, sqlite_store):
        """원장 추가 후 최종 상태 기록"""
        delivery_id = await sqlite_store.insert_delivery(_delivery(
            source_data={"magnitude": 6.1}, coordinates=Coordinates(lat=35.7, lng=-117.5)
        ))
        await sqlite_store.update_delivery_status(delivery_id, "sent", delivered_at=T0 + timedelta(seconds=1))

        row = await sqlite_store.get_delivery(delivery_id)
        assert row.delivery_status == "sent"
        assert row.delivered_at == T0 + timedelta(seconds=1)
        assert row.source_data == {"magnitude": 6.1}
        assert row.coordinates == Coordinates(lat=35.7, lng=-117.5)

    @pytest.mark.asyncio
    async def test_terminal_status_not_overwritten(self, sqlite_store):
        """최종 상태는 다시 갱신할 수 없음"""
        delivery_id = await sqlite_store.insert_delivery(_delivery())
        await sqlite_store.update_delivery_status(delivery_id, "failed", error_message="boom")

        with pytest.raises(StoreError):
            await sqlite_store.update_delivery_status(delivery_id, "sent", delivered_at=T0)

        row = await sqlite_store.get_delivery(delivery_id)
        assert row.delivery_status == "failed"
        assert row.error_message == "boom"

    @pytest.mark.asyncio
    async def test_range_queries(self, sqlite_store):
        """시간 구간 조회 (끝 시각 제외)"""
        await sqlite_store.insert_delivery(_delivery(at=T0 - timedelta(minutes=90)))
        await sqlite_store.insert_delivery(_delivery(at=T0 - timedelta(minutes=30)))
        await sqlite_store.insert_delivery(_delivery(at=T0))
        await sqlite_store.insert_delivery(_delivery(rule_id="other", at=T0))

        since = await sqlite_store.load_deliveries_since("rule-1", T0 - timedelta(minutes=60))
        assert len(since) == 2

        in_range = await sqlite_store.load_deliveries_in_range("rule-1", T0 - timedelta(hours=2), T0)
        assert len(in_range) == 2

    @pytest.mark.asyncio
    async def test_range_query_with_offset_bounds(self, sqlite_store):
        """UTC가 아닌 시간대 경계도 올바르게 비교"""
        await sqlite_store.insert_delivery(_delivery(at=T0))
        est = timezone(timedelta(hours=-5))
        start = datetime(2025, 3, 14, 0, 0, tzinfo=est)
        end = datetime(2025, 3, 15, 0, 0, tzinfo=est)
        assert len(await sqlite_store.load_deliveries_in_range("rule-1", start, end)) == 1

    @pytest.mark.asyncio
    async def test_list_deliveries_newest_first(self, sqlite_store):
        """사용자 발송 이력은 최신순"""
        for minutes in (30, 10, 20):
            await sqlite_store.insert_delivery(_delivery(at=T0 - timedelta(minutes=minutes), title=f"t{minutes}"))
        await sqlite_store.insert_delivery(_delivery(user_id="someone-else"))

        rows = await sqlite_store.list_deliveries("user-1")
        assert [r.title for r in rows] == ["t10", "t20", "t30"]
        assert len(await sqlite_store.list_deliveries("user-1", limit=1)) == 1

    @pytest.mark.asyncio
    async def test_unreadable_database_raises_store_error(self, tmp_path):
        """DB 오류는 StoreError로 변환"""
        broken = SQLiteAlertStore(str(tmp_path / "missing-dir" / "x.db"))
        with pytest.raises(StoreError):
            await broken.load_active_rules("earthquake")


class TestInMemoryAlertStore:
    """메모리 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_terminal_status_not_overwritten(self):
        """최종 상태는 다시 갱신할 수 없음"""
        store = InMemoryAlertStore()
        delivery_id = await store.insert_delivery(_delivery())
        await store.update_delivery_status(delivery_id, "sent", delivered_at=T0)
        with pytest.raises(StoreError):
            await store.update_delivery_status(delivery_id, "failed", error_message="late")

    @pytest.mark.asyncio
    async def test_unknown_delivery(self):
        """없는 항목 갱신은 StoreError"""
        with pytest.raises(StoreError):
            await InMemoryAlertStore().update_delivery_status("nope", "sent")


class TestSQLiteOutbox:
    """SQLite Outbox 테스트"""

    @pytest.fixture
    def outbox(self, temp_db_path):
        """테스트용 SQLite Outbox"""
        return SQLiteOutbox(temp_db_path)

    @pytest.mark.asyncio
    async def test_outbox_fifo(self, outbox):
        """가장 오래된 항목부터 조회"""
        await outbox.init()
        first = await outbox.enqueue("d1", "email", {"n": 1})
        await outbox.enqueue("d2", "sms", {"n": 2})

        item = await outbox.peek_oldest()
        assert item.id == first
        assert item.delivery_id == "d1"
        assert item.method == "email"
        assert item.payload == {"n": 1}
        assert item.attempts == 0
        assert await outbox.get_count() == 2

    @pytest.mark.asyncio
    async def test_outbox_attempt_and_delete(self, outbox):
        """시도 횟수 증가와 삭제"""
        await outbox.init()
        oid = await outbox.enqueue("d1", "webhook", {"n": 1})

        await outbox.mark_attempt(oid)
        assert (await outbox.peek_oldest()).attempts == 1

        await outbox.delete(oid)
        assert await outbox.peek_oldest() is None
        assert await outbox.get_count() == 0

    @pytest.mark.asyncio
    async def test_outbox_attempt_schedules_next_retry(self, outbox):
        """재시도 예약된 항목은 예약 시각 이후에만 조회"""
        await outbox.init()
        oid = await outbox.enqueue("d1", "email", {"n": 1})
        later = await outbox.enqueue("d2", "sms", {"n": 2})

        await outbox.mark_attempt(oid, delay=60)

        assert (await outbox.peek_oldest()).id == later
        await outbox.delete(later)
        assert await outbox.peek_oldest() is None
        assert (await outbox.peek_oldest(now=time.time() + 61)).id == oid
