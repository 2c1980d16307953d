"""
File: clickatell_sms/settings.py

Project: Clickatell SMS client

Purpose:
- Centralised gateway configuration.
- Keep credentials out of code via environment variables.

Notes:
- Always required:
  - CLICKATELL_API_ID
- HTTP API (CLICKATELL_API_MODE=http):
  - CLICKATELL_USERNAME
  - CLICKATELL_PASSWORD
- REST API (CLICKATELL_API_MODE=rest, the default):
  - CLICKATELL_API_KEY
- Optional:
  - CLICKATELL_TIMEOUT / CLICKATELL_CONNECT_TIMEOUT (seconds, default 5)
  - CLICKATELL_BASE_URL (defaults to https://api.clickatell.com/)
  - CLICKATELL_DEBUG (true/false, default false)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from clickatell_sms.request_builder import DEFAULT_BASE_URL, ApiMode
from clickatell_sms.transport import DEFAULT_CONNECT_TIMEOUT, DEFAULT_TIMEOUT


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise RuntimeError(
            f"Missing required environment variable: {name}. "
            f"Set it in your .env / shell before running."
        )
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class GatewaySettings:
    api_mode: ApiMode
    api_id: str
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    base_url: str = DEFAULT_BASE_URL
    debug: bool = False

    @property
    def base_origin(self) -> str:
        return self.base_url if self.base_url.endswith("/") else f"{self.base_url}/"


def load_settings() -> GatewaySettings:
    raw_mode = os.getenv("CLICKATELL_API_MODE", ApiMode.REST.value).strip().lower()
    try:
        api_mode = ApiMode(raw_mode)
    except ValueError:
        raise RuntimeError(f"CLICKATELL_API_MODE must be 'http' or 'rest', got {raw_mode!r}")

    username = password = api_key = None
    if api_mode == ApiMode.HTTP:
        username = _require_env("CLICKATELL_USERNAME")
        password = _require_env("CLICKATELL_PASSWORD")
    else:
        api_key = _require_env("CLICKATELL_API_KEY")

    return GatewaySettings(
        api_mode=api_mode,
        api_id=_require_env("CLICKATELL_API_ID"),
        username=username,
        password=password,
        api_key=api_key,
        timeout=_float_env("CLICKATELL_TIMEOUT", DEFAULT_TIMEOUT),
        connect_timeout=_float_env("CLICKATELL_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT),
        base_url=os.getenv("CLICKATELL_BASE_URL", DEFAULT_BASE_URL).strip() or DEFAULT_BASE_URL,
        debug=os.getenv("CLICKATELL_DEBUG", "false").lower() == "true",
    )
