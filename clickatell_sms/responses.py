"""
File: clickatell_sms/responses.py

Project: Clickatell SMS client

Purpose:
Caller-side helpers for raw gateway responses.
The handle only returns raw text; pulling a message id out of it lives here.

HTTP API success:   ID: 205e85d0578314037a96175249fc6a2b
REST API success:   {"data":{"message":[{"accepted":true,"to":"2771000000",
                     "apiMessageId":"77a4a70428f984d9741001e6f17d02b4"}]}}
"""

from __future__ import annotations

import json
from typing import List, Optional, Union

from clickatell_sms.buffer import SmsBuffer
from clickatell_sms.request_builder import ApiMode

HTTP_ID_PREFIX = "ID: "
REST_ID_KEY = "apiMessageId"


def _http_message_id(response: str) -> Optional[str]:
    if not response.startswith(HTTP_ID_PREFIX):
        return None

    buf = SmsBuffer.create(response.strip())
    if buf is None:
        return None
    buf.trim_prefix(len(HTTP_ID_PREFIX))
    if not buf.valid:
        return None

    # multi-destination sends answer "ID: xxx To: 2771..."
    return buf.text.split()[0]


def _rest_message_ids(response: str) -> List[str]:
    try:
        payload = json.loads(response)
    except ValueError:
        return []

    try:
        messages = payload["data"]["message"]
    except (KeyError, TypeError):
        return []

    return [m[REST_ID_KEY] for m in messages if isinstance(m, dict) and m.get(REST_ID_KEY)]


def _rest_message_id_scan(response: str) -> Optional[str]:
    # fallback for payloads that are not valid JSON (values are never escaped)
    buf = SmsBuffer.create(response)
    if buf is None:
        return None

    start = buf.find(REST_ID_KEY)
    if start < 0:
        return None

    value_start = start + len(REST_ID_KEY) + len('":"')
    if value_start >= len(buf):
        return None
    end = buf.find('"', value_start)
    if end < 0:
        return None

    return buf.text[value_start:end] or None


def extract_message_id(api_mode: Union[ApiMode, str], response: Optional[str]) -> Optional[str]:
    """
    First message id in a send message response, or None.
    """
    if not response:
        return None

    if ApiMode(api_mode) == ApiMode.HTTP:
        return _http_message_id(response)

    ids = _rest_message_ids(response)
    if ids:
        return ids[0]
    return _rest_message_id_scan(response)


def extract_message_ids(api_mode: Union[ApiMode, str], response: Optional[str]) -> List[str]:
    """
    Every message id in a send message response (one per destination).
    """
    if not response:
        return []

    if ApiMode(api_mode) == ApiMode.REST:
        return _rest_message_ids(response)

    ids = []
    for line in response.splitlines():
        msg_id = _http_message_id(line)
        if msg_id:
            ids.append(msg_id)
    return ids
