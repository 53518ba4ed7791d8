"""
HTTP endpoints for Disaster Watch alerting.

This module implements health, readiness, metrics and info endpoints
for operational visibility, plus the event intake, rule dry-run and
delivery history endpoints backed by the alert engine.
"""

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import time
from typing import Optional
from watchcenter.core.errors import RuleNotFoundError
from watchcenter.core.models import EmergencyEvent
from watchcenter.orchestrators.alert_engine import AlertEngine
from watchcenter.settings import Settings
from watchcenter.observability import metrics as prom
from watchcenter.observability.logging_setup import get_logger

log = get_logger("watchcenter.http")

def create_app(settings: Settings, engine: Optional[AlertEngine] = None, store=None) -> FastAPI:
    """
    FastAPI 애플리케이션을 생성합니다.

    Args:
        settings: 서비스 설정
        engine: 알림 엔진 (None이면 엔진 엔드포인트는 503)
        store: 레디니스 확인용 저장소 (None이면 engine.store 사용)
    """
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="Disaster Watch Center Alert Engine"
    )

    start_time = time.time()
    if store is None and engine is not None:
        store = engine.store

    def _engine() -> AlertEngine:
        if engine is None:
            raise HTTPException(status_code=503, detail="Alert engine not configured")
        return engine

    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/ready")
    async def ready():
        """레디니스 체크 엔드포인트"""
        if store is None:
            return JSONResponse({"status": "not_ready", "reason": "store not configured"}, status_code=503)
        try:
            await store.load_active_rules("__readiness__")
        except Exception as e:
            log.error(f"저장소 레디니스 확인 실패: {e}")
            return JSONResponse({"status": "not_ready", "reason": "store unavailable"}, status_code=503)
        return JSONResponse({
            "status": "ready",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/metrics")
    async def metrics():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")

        prom.uptime_seconds.set(time.time() - start_time)
        try:
            return Response(
                generate_latest(),
                media_type=CONTENT_TYPE_LATEST
            )
        except Exception as e:
            log.error(f"메트릭 생성 오류: {e}")
            raise HTTPException(status_code=500, detail="Metrics generation failed")

    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        uptime = time.time() - start_time
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "uptime_seconds": int(uptime),
            "metrics_enabled": settings.observability.metrics_enabled,
            "log_level": settings.observability.log_level,
            "outbox_enabled": settings.reliability.outbox_enabled
        })

    @app.post("/events", status_code=202)
    async def post_event(event: EmergencyEvent):
        """이벤트를 처리합니다 (승인된 규칙마다 발송)."""
        await _engine().process_event(event)
        return {"ok": True, "eventId": event.id}

    @app.post("/alerts/test/{rule_id}")
    async def test_alert(rule_id: str, event: EmergencyEvent):
        """규칙 승인 여부를 확인합니다 (발송하지 않음)."""
        try:
            matched = await _engine().test_alert(rule_id, event)
        except RuleNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {"ruleId": rule_id, "matched": matched}

    @app.get("/alerts/history/{user_id}")
    async def history(user_id: str, limit: int = 50):
        """사용자의 최근 발송 원장을 반환합니다."""
        if limit < 1 or limit > 500:
            raise HTTPException(status_code=422, detail="limit must be between 1 and 500")
        rows = await _engine().history(user_id, limit)
        return [r.model_dump(mode="json", by_alias=True) for r in rows]

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "metrics": "/metrics",
                "info": "/info",
                "events": "/events",
                "test_alert": "/alerts/test/{rule_id}",
                "history": "/alerts/history/{user_id}"
            }
        })

    return app
