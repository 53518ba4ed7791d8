"""
SQLite-based alert store for Disaster Watch alerting.

This module implements AlertStorePort on SQLite: alert rules, user
notification settings and the append-only delivery ledger. Timestamps
are stored as fixed-width UTC ISO strings so range queries compare
lexicographically.
"""

import aiosqlite
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from watchcenter.core.errors import StoreError
from watchcenter.core.models import AlertDelivery, AlertRule, DeliveryStatus, NotificationSettings
from watchcenter.observability.logging_setup import get_logger

log = get_logger("watchcenter.store")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS alert_rules (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    alert_type TEXT NOT NULL,
    conditions TEXT NOT NULL DEFAULT '[]',
    states TEXT NOT NULL DEFAULT '[]',
    cooldown_minutes INTEGER NOT NULL DEFAULT 60,
    max_alerts_per_day INTEGER NOT NULL DEFAULT 10,
    notification_methods TEXT NOT NULL DEFAULT '["email"]',
    webhook_url TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT,
    updated_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_alert_rules_type ON alert_rules(alert_type, is_active);

CREATE TABLE IF NOT EXISTS user_notification_settings (
    user_id TEXT PRIMARY KEY,
    email TEXT,
    phone_number TEXT,
    email_enabled INTEGER NOT NULL DEFAULT 1,
    sms_enabled INTEGER NOT NULL DEFAULT 0,
    webhook_enabled INTEGER NOT NULL DEFAULT 0,
    quiet_hours_enabled INTEGER NOT NULL DEFAULT 0,
    quiet_hours_start TEXT,
    quiet_hours_end TEXT,
    timezone TEXT NOT NULL DEFAULT 'America/New_York'
);

CREATE TABLE IF NOT EXISTS alert_deliveries (
    id TEXT PRIMARY KEY,
    alert_rule_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    message TEXT NOT NULL,
    severity TEXT NOT NULL,
    alert_type TEXT NOT NULL,
    source_data TEXT NOT NULL DEFAULT '{}',
    location TEXT NOT NULL DEFAULT '',
    coordinates TEXT,
    delivery_method TEXT NOT NULL,
    delivery_status TEXT NOT NULL DEFAULT 'pending',
    created_at TEXT NOT NULL,
    delivered_at TEXT,
    error_message TEXT
);
CREATE INDEX IF NOT EXISTS idx_alert_deliveries_rule_created ON alert_deliveries(alert_rule_id, created_at);
CREATE INDEX IF NOT EXISTS idx_alert_deliveries_user_created ON alert_deliveries(user_id, created_at);
"""

_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def _ts(value: Optional[datetime]) -> Optional[str]:
    """datetime을 고정 폭 UTC 문자열로 변환합니다."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_TS_FORMAT)


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.strptime(value, _TS_FORMAT).replace(tzinfo=timezone.utc)


def _loads(value: Optional[str], default: Any) -> Any:
    return json.loads(value) if value else default


def _rule_from_row(row: aiosqlite.Row) -> AlertRule:
    return AlertRule(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        description=row["description"],
        alert_type=row["alert_type"],
        conditions=_loads(row["conditions"], []),
        states=_loads(row["states"], []),
        cooldown_minutes=row["cooldown_minutes"],
        max_alerts_per_day=row["max_alerts_per_day"],
        notification_methods=_loads(row["notification_methods"], []),
        webhook_url=row["webhook_url"],
        is_active=bool(row["is_active"]),
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def _settings_from_row(row: aiosqlite.Row) -> NotificationSettings:
    return NotificationSettings(
        user_id=row["user_id"],
        email=row["email"],
        phone_number=row["phone_number"],
        email_enabled=bool(row["email_enabled"]),
        sms_enabled=bool(row["sms_enabled"]),
        webhook_enabled=bool(row["webhook_enabled"]),
        quiet_hours_enabled=bool(row["quiet_hours_enabled"]),
        quiet_hours_start=row["quiet_hours_start"],
        quiet_hours_end=row["quiet_hours_end"],
        timezone=row["timezone"],
    )


def _delivery_from_row(row: aiosqlite.Row) -> AlertDelivery:
    return AlertDelivery(
        id=row["id"],
        alert_rule_id=row["alert_rule_id"],
        user_id=row["user_id"],
        title=row["title"],
        message=row["message"],
        severity=row["severity"],
        alert_type=row["alert_type"],
        source_data=_loads(row["source_data"], {}),
        location=row["location"],
        coordinates=_loads(row["coordinates"], None),
        delivery_method=row["delivery_method"],
        delivery_status=row["delivery_status"],
        created_at=_parse_ts(row["created_at"]),
        delivered_at=_parse_ts(row["delivered_at"]),
        error_message=row["error_message"],
    )


class SQLiteAlertStore:
    """SQLite 기반 규칙/설정/원장 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteAlertStore 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteAlertStore 스키마 초기화 완료: {self.path}")

    async def _fetchall(self, sql: str, params: tuple = ()) -> List[aiosqlite.Row]:
        try:
            async with aiosqlite.connect(self.path) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(sql, params)
                return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            raise StoreError(f"query failed: {e}") from e

    async def _execute(self, sql: str, params: tuple = ()) -> int:
        """쓰기 쿼리를 실행하고 영향받은 행 수를 반환합니다."""
        try:
            async with aiosqlite.connect(self.path) as db:
                cursor = await db.execute(sql, params)
                await db.commit()
                return cursor.rowcount
        except aiosqlite.Error as e:
            raise StoreError(f"write failed: {e}") from e

    # ---- 규칙/설정 (시드 및 외부 관리용) ----

    async def upsert_rule(self, rule: AlertRule) -> None:
        """규칙을 추가하거나 갱신합니다."""
        await self._execute(
            "INSERT OR REPLACE INTO alert_rules (id, user_id, name, description, alert_type, conditions, "
            "states, cooldown_minutes, max_alerts_per_day, notification_methods, webhook_url, is_active, "
            "created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                rule.id, rule.user_id, rule.name, rule.description, rule.alert_type,
                json.dumps([c.model_dump(mode="json") for c in rule.conditions], ensure_ascii=False),
                json.dumps(rule.states),
                rule.cooldown_minutes, rule.max_alerts_per_day,
                json.dumps(rule.notification_methods),
                rule.webhook_url, 1 if rule.is_active else 0,
                _ts(rule.created_at), _ts(rule.updated_at),
            )
        )

    async def delete_rule(self, rule_id: str) -> None:
        await self._execute("DELETE FROM alert_rules WHERE id = ?", (rule_id,))

    async def upsert_settings(self, settings: NotificationSettings) -> None:
        """사용자 알림 설정을 추가하거나 갱신합니다."""
        await self._execute(
            "INSERT OR REPLACE INTO user_notification_settings (user_id, email, phone_number, email_enabled, "
            "sms_enabled, webhook_enabled, quiet_hours_enabled, quiet_hours_start, quiet_hours_end, timezone) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                settings.user_id, settings.email, settings.phone_number,
                int(settings.email_enabled), int(settings.sms_enabled), int(settings.webhook_enabled),
                int(settings.quiet_hours_enabled), settings.quiet_hours_start, settings.quiet_hours_end,
                settings.timezone,
            )
        )

    # ---- AlertStorePort ----

    async def load_active_rules(self, alert_type: str) -> List[AlertRule]:
        rows = await self._fetchall(
            "SELECT * FROM alert_rules WHERE is_active = 1 AND alert_type = ?",
            (alert_type,)
        )
        return [_rule_from_row(r) for r in rows]

    async def load_rule(self, rule_id: str) -> Optional[AlertRule]:
        rows = await self._fetchall("SELECT * FROM alert_rules WHERE id = ?", (rule_id,))
        return _rule_from_row(rows[0]) if rows else None

    async def load_deliveries_since(self, rule_id: str, since: datetime) -> List[AlertDelivery]:
        rows = await self._fetchall(
            "SELECT * FROM alert_deliveries WHERE alert_rule_id = ? AND created_at >= ?",
            (rule_id, _ts(since))
        )
        return [_delivery_from_row(r) for r in rows]

    async def load_deliveries_in_range(self, rule_id: str, start: datetime, end: datetime) -> List[AlertDelivery]:
        rows = await self._fetchall(
            "SELECT * FROM alert_deliveries WHERE alert_rule_id = ? AND created_at >= ? AND created_at < ?",
            (rule_id, _ts(start), _ts(end))
        )
        return [_delivery_from_row(r) for r in rows]

    async def load_settings(self, user_id: str) -> Optional[NotificationSettings]:
        rows = await self._fetchall(
            "SELECT * FROM user_notification_settings WHERE user_id = ?",
            (user_id,)
        )
        return _settings_from_row(rows[0]) if rows else None

    async def insert_delivery(self, delivery: AlertDelivery) -> str:
        """
        원장 항목을 추가합니다.

        Args:
            delivery: 추가할 항목

        Returns:
            생성된 항목 ID
        """
        delivery_id = delivery.id or uuid.uuid4().hex
        coordinates = delivery.coordinates.model_dump() if delivery.coordinates else None
        await self._execute(
            "INSERT INTO alert_deliveries (id, alert_rule_id, user_id, title, message, severity, alert_type, "
            "source_data, location, coordinates, delivery_method, delivery_status, created_at, delivered_at, "
            "error_message) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                delivery_id, delivery.alert_rule_id, delivery.user_id, delivery.title, delivery.message,
                delivery.severity, delivery.alert_type,
                json.dumps(delivery.source_data, ensure_ascii=False, default=str),
                delivery.location,
                json.dumps(coordinates) if coordinates else None,
                delivery.delivery_method, delivery.delivery_status,
                _ts(delivery.created_at), _ts(delivery.delivered_at), delivery.error_message,
            )
        )
        return delivery_id

    async def update_delivery_status(self,
                                     delivery_id: str,
                                     status: DeliveryStatus,
                                     delivered_at: Optional[datetime] = None,
                                     error_message: Optional[str] = None) -> None:
        """
        pending 항목의 최종 상태를 기록합니다.

        이미 최종 상태인 항목은 갱신하지 않고 StoreError를 발생시킵니다.
        """
        updated = await self._execute(
            "UPDATE alert_deliveries SET delivery_status = ?, delivered_at = ?, error_message = ? "
            "WHERE id = ? AND delivery_status = 'pending'",
            (status, _ts(delivered_at), error_message, delivery_id)
        )
        if updated == 0:
            raise StoreError(f"no pending delivery: {delivery_id}")

    async def list_deliveries(self, user_id: str, limit: int = 50) -> List[AlertDelivery]:
        rows = await self._fetchall(
            "SELECT * FROM alert_deliveries WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
            (user_id, limit)
        )
        return [_delivery_from_row(r) for r in rows]

    async def get_delivery(self, delivery_id: str) -> Optional[AlertDelivery]:
        rows = await self._fetchall("SELECT * FROM alert_deliveries WHERE id = ?", (delivery_id,))
        return _delivery_from_row(rows[0]) if rows else None
