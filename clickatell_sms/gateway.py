"""
File: clickatell_sms/gateway.py

Project: Clickatell SMS client

Purpose:
Gateway handle: one authenticated session against either the
Clickatell HTTP API (username + password) or REST API (bearer token).

Supports:
- send message(s)
- message status
- account balance
- message charge
- route/number coverage
- stop a queued message

Design rules:
- handle_init() validates everything upfront; no partial handle is returned
- Every operation: reset -> build -> execute -> return a copy of the response
- Operations never raise; None means validation or transport failure
  (inspect http_status / transport_code for detail)
- Not safe for concurrent use: one response slot per handle
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Union

import requests

from clickatell_sms.buffer import SmsBuffer
from clickatell_sms.diagnostics import get_logger
from clickatell_sms.errors import ClickatellError
from clickatell_sms.params import MsisdnList, ParameterSet
from clickatell_sms.request_builder import DEFAULT_BASE_URL, ApiMode, build_request
from clickatell_sms.transport import (
    HttpMethod,
    TransportCode,
    TransportExecutor,
    TransportSubsystem,
)

logger = get_logger("gateway")

BEARER_PREFIX = "Bearer "

REST_DEFAULT_HEADERS = {
    "X-Version": "1",
    "Content-Type": "application/json",
    "Accept": "application/json",
}

HTTP_DEFAULT_HEADERS = {
    "Connection": "keep-alive",
    "Cache-Control": "max-age=0",
    "Origin": "null",
}

# HTTP API scripts
HTTP_SEND_PATH = "http/sendmsg.php"
HTTP_STATUS_PATH = "http/querymsg.php"
HTTP_BALANCE_PATH = "http/getbalance.php"
HTTP_CHARGE_PATH = "http/getmsgcharge.php"
HTTP_COVERAGE_PATH = "utils/routecoverage.php"
HTTP_STOP_PATH = "http/delmsg.php"

# REST API resources
REST_MESSAGE_PATH = "rest/message"
REST_BALANCE_PATH = "rest/account/balance"
REST_COVERAGE_PATH = "rest/coverage/"


class HandleState(str, Enum):
    READY = "ready"
    RESETTING = "resetting"
    BUILDING = "building"
    EXECUTING = "executing"
    SHUT_DOWN = "shut_down"


@dataclass(frozen=True)
class FormCredentials:
    username: str
    password: str


@dataclass(frozen=True)
class TokenCredential:
    token: str


Credentials = Union[FormCredentials, TokenCredential]


def _parse_mode(api_mode: Union[ApiMode, str, None]) -> Optional[ApiMode]:
    try:
        return ApiMode(api_mode)
    except ValueError:
        return None


def _present(value: Optional[str]) -> bool:
    return isinstance(value, str) and len(value) > 0


class GatewayHandle:
    def __init__(
        self,
        *,
        api_mode: ApiMode,
        credentials: Credentials,
        api_id: str,
        transport: TransportExecutor,
        base_url: str = DEFAULT_BASE_URL,
        escape_json: bool = False,
    ) -> None:
        self._api_mode = api_mode
        self._credentials: Optional[Credentials] = credentials
        self._api_id: Optional[str] = api_id
        self._transport = transport
        self._base_url = base_url
        self._escape_json = escape_json
        self.state = HandleState.READY

    # ---------------------------------------------------------
    # ACCESSORS
    # ---------------------------------------------------------
    @property
    def api_mode(self) -> ApiMode:
        return self._api_mode

    @property
    def api_id(self) -> Optional[str]:
        return self._api_id

    @property
    def form_credentials(self) -> FormCredentials:
        if self._api_mode != ApiMode.HTTP or not isinstance(self._credentials, FormCredentials):
            raise ClickatellError("username/password only exist for the HTTP API")
        return self._credentials

    @property
    def token_credential(self) -> TokenCredential:
        if self._api_mode != ApiMode.REST or not isinstance(self._credentials, TokenCredential):
            raise ClickatellError("API token only exists for the REST API")
        return self._credentials

    @property
    def headers(self) -> Dict[str, str]:
        return self._transport.headers

    @headers.setter
    def headers(self, value: Dict[str, str]) -> None:
        self._transport.headers = dict(value or {})

    @property
    def response(self) -> Optional[str]:
        if self._transport.response is None:
            return None
        return self._transport.response.text

    @property
    def http_status(self) -> int:
        return self._transport.http_status

    @property
    def transport_code(self) -> Optional[TransportCode]:
        return self._transport.transport_code

    @property
    def is_shut_down(self) -> bool:
        return self.state == HandleState.SHUT_DOWN

    # ---------------------------------------------------------
    # PUBLIC API CALLS
    # ---------------------------------------------------------
    def send_message(self, text: str, msisdns: Sequence[str]) -> Optional[str]:
        """
        Send `text` to one or more destination numbers.
        HTTP: GET http/sendmsg.php, REST: POST rest/message with a JSON body.
        Returns the raw gateway response (an "ID: ..." line or a JSON document).
        """
        if not self._begin("send_message", text):
            return None

        dests = MsisdnList.create(msisdns)
        if dests is None:
            return self._fail("send_message", "invalid destination list")

        if self._api_mode == ApiMode.HTTP:
            return self._run(
                "send_message", HTTP_SEND_PATH, HttpMethod.GET, self._http_params("text", text), dests
            )

        params = ParameterSet.create(1)
        params.set(0, "text", text)
        return self._run("send_message", REST_MESSAGE_PATH, HttpMethod.POST, params, dests)

    def get_status(self, msg_id: str) -> Optional[str]:
        if not self._begin("get_status", msg_id):
            return None
        if self._api_mode == ApiMode.HTTP:
            return self._run(
                "get_status", HTTP_STATUS_PATH, HttpMethod.GET, self._http_params("apimsgid", msg_id)
            )
        return self._run("get_status", self._rest_path(REST_MESSAGE_PATH + "/", msg_id), HttpMethod.GET)

    def get_balance(self) -> Optional[str]:
        if not self._begin("get_balance"):
            return None
        if self._api_mode == ApiMode.HTTP:
            return self._run("get_balance", HTTP_BALANCE_PATH, HttpMethod.GET, self._http_params())
        return self._run("get_balance", REST_BALANCE_PATH, HttpMethod.GET)

    def get_charge(self, msg_id: str) -> Optional[str]:
        if not self._begin("get_charge", msg_id):
            return None
        if self._api_mode == ApiMode.HTTP:
            return self._run(
                "get_charge", HTTP_CHARGE_PATH, HttpMethod.GET, self._http_params("apimsgid", msg_id)
            )
        return self._run("get_charge", self._rest_path(REST_MESSAGE_PATH + "/", msg_id), HttpMethod.GET)

    def get_coverage(self, msisdn: str) -> Optional[str]:
        """
        Check whether the gateway covers a network/number without sending to it.
        """
        if not self._begin("get_coverage", msisdn):
            return None
        if self._api_mode == ApiMode.HTTP:
            return self._run(
                "get_coverage", HTTP_COVERAGE_PATH, HttpMethod.GET, self._http_params("msisdn", msisdn)
            )
        return self._run("get_coverage", self._rest_path(REST_COVERAGE_PATH, msisdn), HttpMethod.GET)

    def stop_message(self, msg_id: str) -> Optional[str]:
        """
        Stop delivery of a message still queued at the gateway
        (messages already handed to an SMSC cannot be stopped).
        """
        if not self._begin("stop_message", msg_id):
            return None
        if self._api_mode == ApiMode.HTTP:
            return self._run(
                "stop_message", HTTP_STOP_PATH, HttpMethod.GET, self._http_params("apimsgid", msg_id)
            )
        return self._run(
            "stop_message", self._rest_path(REST_MESSAGE_PATH + "/", msg_id), HttpMethod.DELETE
        )

    # ---------------------------------------------------------
    # LIFECYCLE
    # ---------------------------------------------------------
    def shutdown(self) -> None:
        if self.state == HandleState.SHUT_DOWN:
            return
        self._transport.close()
        self._credentials = None
        self._api_id = None
        self.state = HandleState.SHUT_DOWN
        logger.info("gateway handle shut down (%s API)", self._api_mode.value)

    # ---------------------------------------------------------
    # INTERNAL
    # ---------------------------------------------------------
    def _fail(self, op: str, reason: str) -> None:
        logger.error("%s: %s", op, reason)
        self.state = HandleState.READY
        return None

    def _begin(self, op: str, *required: str) -> bool:
        if self.state == HandleState.SHUT_DOWN:
            logger.error("%s: handle already shut down", op)
            return False
        if not all(_present(value) for value in required):
            logger.error("%s: invalid parameter", op)
            return False

        self.state = HandleState.RESETTING
        self._transport.reset()
        self.state = HandleState.BUILDING
        return True

    def _http_params(self, key: Optional[str] = None, value: Optional[str] = None) -> ParameterSet:
        creds = self.form_credentials
        params = ParameterSet.create(4 if key else 3)
        params.set(0, "user", creds.username)
        params.set(1, "password", creds.password)
        params.set(2, "api_id", self._api_id)
        if key:
            params.set(3, key, value)
        params.encode_values()
        return params

    def _rest_path(self, prefix: str, ident: str) -> SmsBuffer:
        path = SmsBuffer.create(prefix)
        if not path.append(raw=ident):
            # an invalid path is rejected by the request builder
            path.destroy()
        return path

    def _run(
        self,
        op: str,
        path: Union[str, SmsBuffer],
        method: HttpMethod,
        params: Optional[ParameterSet] = None,
        msisdns: Optional[MsisdnList] = None,
    ) -> Optional[str]:
        path_buf = SmsBuffer.create(path) if isinstance(path, str) else path
        try:
            request = build_request(
                self._api_mode,
                path_buf,
                method,
                params,
                msisdns,
                base_url=self._base_url,
                escape_json=self._escape_json,
            )
        except ClickatellError as exc:
            return self._fail(op, str(exc))
        except MemoryError:
            return self._fail(op, "failed to allocate memory for request")
        finally:
            for owned in (path_buf, params, msisdns):
                if owned is not None:
                    owned.destroy()

        self.state = HandleState.EXECUTING
        try:
            self._transport.execute(request.url, request.method, request.body)
        finally:
            request.destroy()
            self.state = HandleState.READY

        if self._transport.response is None:
            return None
        copy = self._transport.response.duplicate()
        return None if copy is None else copy.text


# -------------------------------------------------------------------
# Construction / teardown
# -------------------------------------------------------------------
def handle_init(
    api_mode: Union[ApiMode, str],
    username: Optional[str] = None,
    password: Optional[str] = None,
    api_key: Optional[str] = None,
    api_id: Optional[str] = None,
    timeout: float = 0,
    connect_timeout: float = 0,
    *,
    base_url: str = DEFAULT_BASE_URL,
    escape_json: bool = False,
    subsystem: Optional[TransportSubsystem] = None,
    session: Optional[requests.Session] = None,
) -> Optional[GatewayHandle]:
    """
    Validate inputs and build a ready handle, or return None.
    HTTP needs username + password + api_id; REST needs api_key + api_id.
    Non-positive timeouts fall back to 5 seconds.
    """
    mode = _parse_mode(api_mode)
    if (
        mode is None
        or not _present(api_id)
        or (mode == ApiMode.HTTP and not (_present(username) and _present(password)))
        or (mode == ApiMode.REST and not _present(api_key))
    ):
        logger.error("handle_init: invalid parameter")
        return None

    transport = TransportExecutor(subsystem=subsystem, session=session)
    transport.configure(timeout, connect_timeout)

    if mode == ApiMode.REST:
        credentials: Credentials = TokenCredential(token=api_key)
        auth = SmsBuffer.create(BEARER_PREFIX)
        if not auth.append(raw=api_key):
            auth.destroy()
            transport.close()
            logger.error("handle_init: API key is not Latin-1 text")
            return None
        transport.headers = {**REST_DEFAULT_HEADERS, "Authorization": auth.text}
        auth.destroy()
    else:
        credentials = FormCredentials(username=username, password=password)
        transport.headers = dict(HTTP_DEFAULT_HEADERS)

    logger.info("gateway handle ready (%s API)", mode.value)
    return GatewayHandle(
        api_mode=mode,
        credentials=credentials,
        api_id=api_id,
        transport=transport,
        base_url=base_url,
        escape_json=escape_json,
    )


def handle_shutdown(handle: Optional[GatewayHandle]) -> None:
    if handle is None:
        logger.error("handle_shutdown: invalid parameter")
        return
    handle.shutdown()
