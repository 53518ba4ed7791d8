# watchcenter/settings.py
from __future__ import annotations
from pydantic import BaseModel, Field

class StoreConfig(BaseModel):
    db_path: str = "/data/watchcenter.db"
    backend: str = "sqlite"                   # sqlite | memory

class SmtpConfig(BaseModel):
    host: str = "localhost"
    port: int = 25
    username: str | None = None
    password: str | None = None
    use_tls: bool = False
    sender: str = "alerts@disasterwatch.local"

class SmsGatewayConfig(BaseModel):
    url: str = ""
    token: str = ""

class DispatchConfig(BaseModel):
    channel_timeout_sec: float = 10.0
    email_provider: str = "log"               # log | smtp
    sms_provider: str = "log"                 # log | http
    smtp: SmtpConfig = Field(default_factory=SmtpConfig)
    sms_gateway: SmsGatewayConfig = Field(default_factory=SmsGatewayConfig)

class EngineConfig(BaseModel):
    quota_timezone: str | None = None         # None = 서버 로컬 시간대

class Observability(BaseModel):
    http_port: int = 8099
    metrics_enabled: bool = True
    service_name: str = "Disaster Watch Center"
    build_version: str = "0.1.0"
    build_date: str = "2026-01-01"
    log_level: str = "INFO"

class Reliability(BaseModel):
    outbox_enabled: bool = False
    outbox_path: str = "/data/outbox.db"
    max_retries: int = 5
    backoff_initial_sec: float = 1.0
    backoff_max_sec: float = 60.0
    poll_interval_sec: float = 1.0

class Settings(BaseModel):
    # 하위 섹션 (기본값/팩토리로 누락 방지)
    store: StoreConfig = Field(default_factory=StoreConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    observability: Observability = Field(default_factory=Observability)
    reliability: Reliability = Field(default_factory=Reliability)
