from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - DATABASE_CONNECTION_STRING: SQLite target. 'Data Source=<path>', a plain path,
      or a 'file:' URI. Default 'Data Source=./data/mattodo.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - ENABLE_API_KEY_AUTH: 'true' to require an API key on the task routes (default: false)
    - API_KEY: expected key (required when ENABLE_API_KEY_AUTH=true)
    - LOG_LEVEL: root log level name (default: INFO)
    - HOST / PORT: bind address for `python -m mattodo_api` (default: 0.0.0.0:8000)
    """

    connection_string: str
    cors_allow_origins: List[str]
    enable_api_key_auth: bool
    api_key: Optional[str]
    log_level: str
    host: str = "0.0.0.0"
    port: int = 8000


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    connection_string = _get_env("DATABASE_CONNECTION_STRING", "Data Source=./data/mattodo.db").strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))

    enable_api_key_auth = _parse_bool(_get_env("ENABLE_API_KEY_AUTH", "false"), False)
    api_key = os.getenv("API_KEY") if enable_api_key_auth else None

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    host = _get_env("HOST", "0.0.0.0").strip()
    port = int(_get_env("PORT", "8000"))

    return Settings(
        connection_string=connection_string,
        cors_allow_origins=origins,
        enable_api_key_auth=enable_api_key_auth,
        api_key=api_key,
        log_level=log_level,
        host=host,
        port=port,
    )
