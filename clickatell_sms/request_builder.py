"""
File: clickatell_sms/request_builder.py

Project: Clickatell SMS client

Purpose:
Turns a ParameterSet (+ optional destination list) into wire data.

HTTP API (form):
    ?user=u&password=p&api_id=1&text=hi+there&to=111,222
REST API (JSON):
    {"text":"hi","to":["111","222"]}

Design rules:
- Pure functions; every buffer returned is owned by the caller
- HTTP values must already be percent-encoded; destinations are never encoded
- JSON values are inserted verbatim unless escape_json is requested
  (quotes/backslashes in a value corrupt the payload otherwise)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from clickatell_sms.buffer import SmsBuffer
from clickatell_sms.errors import ClickatellError
from clickatell_sms.params import MsisdnList, ParameterSet
from clickatell_sms.transport import HttpMethod

DEFAULT_BASE_URL = "https://api.clickatell.com/"


class ApiMode(str, Enum):
    HTTP = "http"  # username + password
    REST = "rest"  # bearer token


@dataclass(frozen=True)
class BuiltRequest:
    url: SmsBuffer
    method: HttpMethod
    body: Optional[SmsBuffer] = None

    def destroy(self) -> None:
        self.url.destroy()
        if self.body is not None:
            self.body.destroy()


def _json_text(value: str, escape: bool) -> str:
    if not escape:
        return value
    return json.dumps(value, ensure_ascii=False)[1:-1]


def _checked(ok: bool, what: str) -> None:
    if not ok:
        raise ClickatellError(f"failed to build {what}")


# ---------------------------------------------------------
# PARAMETER FORMATTING
# ---------------------------------------------------------
def format_http_params(params: ParameterSet, msisdns: Optional[MsisdnList] = None) -> SmsBuffer:
    out = SmsBuffer.create("?")

    for i, slot in enumerate(params):
        _checked(
            out.append_formatted("%s%s=%s", "" if i == 0 else "&", slot.key.text, slot.value.text),
            "query string",
        )

    if msisdns is not None:
        _checked(out.append_formatted("&to="), "query string")
        for i, dest in enumerate(msisdns):
            _checked(out.append_formatted("%s%s", "" if i == 0 else ",", dest.text), "query string")

    return out


def format_json_params(
    params: ParameterSet,
    msisdns: Optional[MsisdnList] = None,
    *,
    escape_json: bool = False,
) -> SmsBuffer:
    out = SmsBuffer.create("{")

    for i, slot in enumerate(params):
        _checked(
            out.append_formatted(
                '%s"%s":"%s"',
                "" if i == 0 else ",",
                _json_text(slot.key.text, escape_json),
                _json_text(slot.value.text, escape_json),
            ),
            "json body",
        )

    if msisdns is not None:
        _checked(out.append_formatted(',"to":['), "json body")
        for i, dest in enumerate(msisdns):
            _checked(
                out.append_formatted('%s"%s"', "" if i == 0 else ",", _json_text(dest.text, escape_json)),
                "json body",
            )
        _checked(out.append_formatted("]"), "json body")

    _checked(out.append_formatted("}"), "json body")
    return out


def format_params(
    api_mode: ApiMode,
    params: ParameterSet,
    msisdns: Optional[MsisdnList] = None,
    *,
    escape_json: bool = False,
) -> SmsBuffer:
    if params is None or len(params) < 1 or not params.filled:
        raise ClickatellError("parameter set is empty or has unfilled slots")
    if msisdns is not None and not msisdns.valid:
        raise ClickatellError("destination list is invalid")

    if api_mode == ApiMode.HTTP:
        return format_http_params(params, msisdns)
    return format_json_params(params, msisdns, escape_json=escape_json)


# ---------------------------------------------------------
# FULL REQUEST
# ---------------------------------------------------------
def build_request(
    api_mode: ApiMode,
    path: SmsBuffer,
    method: HttpMethod,
    params: Optional[ParameterSet] = None,
    msisdns: Optional[MsisdnList] = None,
    *,
    base_url: str = DEFAULT_BASE_URL,
    escape_json: bool = False,
) -> BuiltRequest:
    """
    base origin + path (+ parameters for GET/DELETE, or a body for POST).
    """
    if path is None or not path.valid or len(path) < 1:
        raise ClickatellError("request path is invalid")

    url = SmsBuffer.create(base_url)
    if url is None:
        raise ClickatellError("failed to allocate memory for URL")
    _checked(url.append(path), "URL")

    if params is None:
        return BuiltRequest(url=url, method=method)

    formatted = format_params(api_mode, params, msisdns, escape_json=escape_json)

    if method == HttpMethod.POST:
        return BuiltRequest(url=url, method=method, body=formatted)

    _checked(url.append(formatted), "URL")
    formatted.destroy()
    return BuiltRequest(url=url, method=method)
