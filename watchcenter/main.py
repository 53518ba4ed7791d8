# watchcenter/main.py
import os, asyncio, signal
from typing import Optional, Tuple
import uvicorn
from watchcenter.settings import Settings
from watchcenter.common.clock import SystemClock, resolve_tz
from watchcenter.adapters.channels import build_channels
from watchcenter.adapters.storage import InMemoryAlertStore, SQLiteAlertStore, SQLiteOutbox
from watchcenter.dispatch.dispatcher import DeliveryDispatcher
from watchcenter.dispatch.retry_worker import OutboxRetryWorker
from watchcenter.orchestrators.alert_engine import AlertEngine
from watchcenter.observability.health import create_app
from watchcenter.observability.logging_setup import setup_logging_dev, get_logger

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()

    # 저장소
    s.store.db_path = os.getenv("WATCH_DB_PATH", s.store.db_path)
    s.store.backend = os.getenv("WATCH_STORE_BACKEND", s.store.backend)

    # 발송
    s.dispatch.channel_timeout_sec = float(os.getenv("CHANNEL_TIMEOUT_SEC", s.dispatch.channel_timeout_sec))
    s.dispatch.email_provider = os.getenv("EMAIL_PROVIDER", s.dispatch.email_provider)
    s.dispatch.sms_provider = os.getenv("SMS_PROVIDER", s.dispatch.sms_provider)
    s.dispatch.smtp.host = os.getenv("SMTP_HOST", s.dispatch.smtp.host)
    s.dispatch.smtp.port = int(os.getenv("SMTP_PORT", s.dispatch.smtp.port))
    s.dispatch.smtp.username = os.getenv("SMTP_USERNAME", s.dispatch.smtp.username)
    s.dispatch.smtp.password = os.getenv("SMTP_PASSWORD", s.dispatch.smtp.password)
    s.dispatch.smtp.use_tls = _b("SMTP_TLS", s.dispatch.smtp.use_tls)
    s.dispatch.smtp.sender = os.getenv("SMTP_SENDER", s.dispatch.smtp.sender)
    s.dispatch.sms_gateway.url = os.getenv("SMS_GATEWAY_URL", s.dispatch.sms_gateway.url)
    s.dispatch.sms_gateway.token = os.getenv("SMS_GATEWAY_TOKEN", s.dispatch.sms_gateway.token)

    # 엔진
    s.engine.quota_timezone = os.getenv("QUOTA_TIMEZONE", s.engine.quota_timezone)

    # 관측성
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.http_port = int(os.getenv("METRICS_PORT", s.observability.http_port))

    # 신뢰성
    s.reliability.outbox_enabled = _b("OUTBOX_ENABLED", s.reliability.outbox_enabled)
    s.reliability.outbox_path = os.getenv("OUTBOX_PATH", s.reliability.outbox_path)
    s.reliability.max_retries = int(os.getenv("OUTBOX_MAX_RETRIES", s.reliability.max_retries))

    return s

async def build_store(s: Settings):
    if s.store.backend == "memory":
        return InMemoryAlertStore()
    store = SQLiteAlertStore(s.store.db_path)
    await store.init()
    return store

async def start_http(settings: Settings, engine: AlertEngine) -> Tuple[uvicorn.Server, asyncio.Task]:
    app = create_app(settings, engine=engine)
    server = uvicorn.Server(
        uvicorn.Config(app, host="0.0.0.0", port=settings.observability.http_port, log_level="info")
    )
    return server, asyncio.create_task(server.serve())

async def shutdown(worker: Optional[OutboxRetryWorker], worker_task: Optional[asyncio.Task],
                   server: Optional[uvicorn.Server], http_task: Optional[asyncio.Task],
                   grace: float = 10.0) -> None:
    """워커와 HTTP 서버에 종료를 요청하고 진행 중인 작업이 끝날 때까지 기다립니다."""
    if worker: worker.stop()
    if server: server.should_exit = True
    tasks = [t for t in (worker_task, http_task) if t]
    if not tasks:
        return
    # 유예 시간 안에 끝나지 않은 작업만 취소
    _, pending = await asyncio.wait(tasks, timeout=grace)
    for t in pending:
        t.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

async def main():
    s = build_settings()
    setup_logging_dev(s.observability.log_level)
    log = get_logger("watchcenter.main")
    log.info("설정 로드 완료")

    store = await build_store(s)
    log.info(f"저장소 준비 완료 backend:{s.store.backend}")

    clock = SystemClock(resolve_tz(s.engine.quota_timezone))

    outbox = None
    worker_task = None
    if s.reliability.outbox_enabled:
        outbox = SQLiteOutbox(s.reliability.outbox_path); await outbox.init()

    dispatcher = DeliveryDispatcher(
        store,
        build_channels(s.dispatch),
        clock,
        timeout_sec=s.dispatch.channel_timeout_sec,
        outbox=outbox,
    )
    engine = AlertEngine(store, dispatcher, clock=clock)
    log.info("알림 엔진 생성 완료")

    worker = None
    if outbox is not None:
        worker = OutboxRetryWorker(
            outbox, dispatcher,
            max_retries=s.reliability.max_retries,
            backoff_initial=s.reliability.backoff_initial_sec,
            backoff_max=s.reliability.backoff_max_sec,
            poll_interval=s.reliability.poll_interval_sec,
        )
        worker_task = asyncio.create_task(worker.start())
        log.info("재시도 워커 시작됨")

    server, http_task = await start_http(s, engine)
    log.info("HTTP 서버 시작됨")

    stop = asyncio.Future()
    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
            except NotImplementedError: pass
    except RuntimeError: pass

    await stop
    log.info("종료 중")
    await shutdown(worker, worker_task, server, http_task)
    log.info("종료 완료")

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
