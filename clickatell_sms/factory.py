"""
File: clickatell_sms/factory.py

Project: Clickatell SMS client

Purpose:
- Provide a single place to construct gateway handles from settings
- Reuse a single handle per process (singleton-style)

Design rules:
- No API call logic here
- Only construction / wiring
"""

from __future__ import annotations

from typing import Optional

from clickatell_sms.gateway import GatewayHandle, handle_init
from clickatell_sms.settings import GatewaySettings, load_settings
from clickatell_sms.transport import TransportSubsystem, default_subsystem


def build_gateway_handle(
    settings: GatewaySettings,
    subsystem: Optional[TransportSubsystem] = None,
) -> Optional[GatewayHandle]:
    return handle_init(
        settings.api_mode,
        username=settings.username,
        password=settings.password,
        api_key=settings.api_key,
        api_id=settings.api_id,
        timeout=settings.timeout,
        connect_timeout=settings.connect_timeout,
        base_url=settings.base_origin,
        subsystem=subsystem,
    )


# -------------------------------------------------
# Handle singleton
# -------------------------------------------------
_handle: GatewayHandle | None = None


def get_gateway_handle() -> Optional[GatewayHandle]:
    """
    Process-wide handle built from the environment.
    Initialises the default transport subsystem on first use.
    """
    global _handle
    if _handle is None or _handle.is_shut_down:
        settings = load_settings()
        subsystem = default_subsystem()
        if not subsystem.active:
            subsystem.init(debug=settings.debug)
        _handle = build_gateway_handle(settings, subsystem)
    return _handle


def reset_gateway_handle() -> None:
    global _handle
    if _handle is not None:
        _handle.shutdown()
    _handle = None
