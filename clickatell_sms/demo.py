"""
File: clickatell_sms/demo.py

Project: Clickatell SMS client

Purpose:
Sample run of every API call against the configured gateway account:
send -> status -> balance -> charge -> coverage -> stop

Usage:
    CLICKATELL_API_MODE=rest CLICKATELL_API_KEY=... CLICKATELL_API_ID=... \
    CLICKATELL_DEMO_MSISDN=2991000000 python -m clickatell_sms.demo

Notes:
- CLICKATELL_DEMO_MSISDN may hold several comma-separated numbers
- This sends a real SMS (and is billed) unless pointed at a test base URL
"""

from __future__ import annotations

import logging
import os
import sys
from typing import List, Optional

import clickatell_sms
from clickatell_sms.factory import build_gateway_handle
from clickatell_sms.gateway import GatewayHandle
from clickatell_sms.responses import extract_message_id
from clickatell_sms.settings import load_settings

logger = logging.getLogger("demo")

DEFAULT_TEXT = "This is example SMS message text; -> insert your own text here."
MSG_NOT_FOUND = "MSG NOT FOUND"


def _demo_msisdns() -> List[str]:
    return [n.strip() for n in os.getenv("CLICKATELL_DEMO_MSISDN", "").split(",") if n.strip()]


def run_api_calls(handle: GatewayHandle, msisdns: List[str], text: str = DEFAULT_TEXT) -> dict:
    label = handle.api_mode.value.upper()
    results = {}
    statuses = {}

    def record(call: str, response: Optional[str]) -> Optional[str]:
        # http_status only describes the most recent call
        results[call] = response
        statuses[call] = handle.http_status
        return response

    logger.info("[%s: Send SMS]", label)
    sent = record("send", handle.send_message(text, msisdns))
    msg_id = extract_message_id(handle.api_mode, sent) or MSG_NOT_FOUND

    logger.info("[%s: Get SMS status]", label)
    record("status", handle.get_status(msg_id))

    logger.info("[%s: Get account balance]", label)
    record("balance", handle.get_balance())

    logger.info("[%s: Get SMS charge]", label)
    record("charge", handle.get_charge(msg_id))

    logger.info("[%s: Get coverage]", label)
    record("coverage", handle.get_coverage(msisdns[0]))

    logger.info("[%s: Stop an SMS]", label)
    record("stop", handle.stop_message(msg_id))

    for call, response in results.items():
        logger.info("%s -> http=%s response=%s", call, statuses[call], response)
    return results


def main() -> int:
    logging.basicConfig(level=logging.INFO)

    msisdns = _demo_msisdns()
    if not msisdns:
        logger.error("CLICKATELL_DEMO_MSISDN is not set")
        return 2

    settings = load_settings()
    clickatell_sms.init(debug=settings.debug)
    try:
        handle = build_gateway_handle(settings)
        if handle is None:
            logger.error("Clickatell SMS handle initialisation failed")
            return 1
        try:
            run_api_calls(handle, msisdns, os.getenv("CLICKATELL_DEMO_TEXT", DEFAULT_TEXT))
        finally:
            handle.shutdown()
    finally:
        clickatell_sms.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
