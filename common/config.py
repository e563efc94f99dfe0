from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env junto al repo; las variables reales del entorno siempre ganan.
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    session_token: Optional[str]
    session_cookie: str
    api_key: Optional[str]
    request_timeout_s: float

    # Cadencias nominales por clase de datos (segundos)
    entities_interval_s: float
    health_interval_s: float
    health_history_interval_s: float
    status_interval_s: float
    servers_interval_s: float

    # Capacidades de historiales y gráficos
    rate_history_size: int
    bandwidth_points: int
    health_points: int
    health_history_samples: int

    frame_rate_hz: float
    control_refresh_delay_s: float
    log_level: str


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("LIVE_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    api_base_url = os.getenv("LIVE_API_URL", "http://localhost:8330").rstrip("/")

    return Settings(
        api_base_url=api_base_url,
        session_token=_optional("LIVE_SESSION_TOKEN"),
        session_cookie=os.getenv("LIVE_SESSION_COOKIE", "mc1session"),
        api_key=_optional("LIVE_API_KEY"),
        request_timeout_s=float(os.getenv("LIVE_REQUEST_TIMEOUT_S", "4")),
        entities_interval_s=float(os.getenv("LIVE_POLL_ENTITIES_S", "5")),
        health_interval_s=float(os.getenv("LIVE_POLL_HEALTH_S", "5")),
        health_history_interval_s=float(os.getenv("LIVE_POLL_HEALTH_HISTORY_S", "60")),
        status_interval_s=float(os.getenv("LIVE_POLL_STATUS_S", "30")),
        servers_interval_s=float(os.getenv("LIVE_POLL_SERVERS_S", "30")),
        rate_history_size=int(os.getenv("LIVE_RATE_HISTORY_SIZE", "30")),
        bandwidth_points=int(os.getenv("LIVE_BANDWIDTH_POINTS", "30")),
        health_points=int(os.getenv("LIVE_HEALTH_POINTS", "60")),
        health_history_samples=int(os.getenv("LIVE_HEALTH_HISTORY_SAMPLES", "60")),
        frame_rate_hz=float(os.getenv("LIVE_FRAME_RATE_HZ", "60")),
        control_refresh_delay_s=float(os.getenv("LIVE_CONTROL_REFRESH_DELAY_S", "0")),
        log_level=os.getenv("LIVE_LOG_LEVEL", "INFO").upper(),
    )
