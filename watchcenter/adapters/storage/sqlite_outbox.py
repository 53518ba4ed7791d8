"""
SQLite-based delivery retry outbox for Disaster Watch alerting.

This module implements an optional outbox that keeps failed channel
deliveries so a background worker can retry them with backoff.
"""

import aiosqlite
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
from watchcenter.observability.logging_setup import get_logger

log = get_logger("watchcenter.outbox")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS delivery_outbox (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    delivery_id TEXT NOT NULL,
    method TEXT NOT NULL,
    payload TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    attempts INTEGER NOT NULL DEFAULT 0,
    next_attempt_at REAL NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_delivery_outbox_created ON delivery_outbox(created_at);
CREATE INDEX IF NOT EXISTS idx_delivery_outbox_due ON delivery_outbox(next_attempt_at);
"""

@dataclass
class OutboxItem:
    """Outbox 항목"""
    id: int
    delivery_id: str
    method: str
    payload: Dict[str, Any]
    attempts: int

class SQLiteOutbox:
    """SQLite 기반 재시도 Outbox"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteOutbox 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteOutbox 스키마 초기화 완료: {self.path}")

    async def enqueue(self, delivery_id: str, method: str, payload: Dict[str, Any]) -> int:
        """
        실패한 발송을 Outbox에 추가합니다.

        Args:
            delivery_id: 실패한 원장 항목 ID
            method: 알림 수단
            payload: 직렬화된 발송 요청

        Returns:
            생성된 항목의 ID
        """
        now = int(time.time())

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "INSERT INTO delivery_outbox (delivery_id, method, payload, created_at) VALUES (?, ?, ?, ?)",
                (delivery_id, method, json.dumps(payload, ensure_ascii=False), now)
            )
            await db.commit()
            return cursor.lastrowid

    async def peek_oldest(self, now: Optional[float] = None) -> Optional[OutboxItem]:
        """
        재시도 시각이 도래한 항목 중 가장 오래된 항목을 조회합니다 (삭제하지 않음).

        Args:
            now: 기준 시각 (epoch 초, 기본값은 현재)

        Returns:
            가장 오래된 OutboxItem 또는 None
        """
        now = time.time() if now is None else now

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT id, delivery_id, method, payload, attempts FROM delivery_outbox "
                "WHERE next_attempt_at <= ? ORDER BY created_at ASC, id ASC LIMIT 1",
                (now,)
            )
            row = await cursor.fetchone()

            if row:
                return OutboxItem(
                    id=row[0],
                    delivery_id=row[1],
                    method=row[2],
                    payload=json.loads(row[3]),
                    attempts=row[4]
                )
            return None

    async def mark_attempt(self, oid: int, delay: float = 0.0) -> None:
        """
        재시도 횟수를 증가시키고 다음 재시도 시각을 예약합니다.

        Args:
            oid: 항목 ID
            delay: 다음 재시도까지 대기 시간 (초)
        """
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "UPDATE delivery_outbox SET attempts = attempts + 1, next_attempt_at = ? WHERE id = ?",
                (time.time() + delay, oid)
            )
            await db.commit()

    async def delete(self, oid: int) -> None:
        """항목을 삭제합니다 (재시도 성공 또는 포기)."""
        async with aiosqlite.connect(self.path) as db:
            await db.execute("DELETE FROM delivery_outbox WHERE id = ?", (oid,))
            await db.commit()

    async def get_count(self) -> int:
        """
        현재 저장된 항목 수를 반환합니다.

        Returns:
            항목 수
        """
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM delivery_outbox")
            result = await cursor.fetchone()
            return result[0] if result else 0
