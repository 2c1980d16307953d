"""
File: clickatell_sms/transport.py

Project: Clickatell SMS client

Purpose:
Executes exactly one HTTP request per call against the gateway.
- TransportSubsystem: process-wide init/shutdown pairing
- TransportExecutor: one long-lived requests.Session per gateway handle

Design rules:
- No retries, no backoff, no rate limiting (caller decides)
- Transport failures are recorded on the executor, never raised
- The response body is streamed into a single response slot
- The API call timeout bounds the whole transfer; a failed transfer keeps no partial body
"""

from __future__ import annotations

import time
from enum import Enum, IntEnum
from typing import Callable, Dict, Optional

import requests
from urllib3.exceptions import ReadTimeoutError

from clickatell_sms.buffer import SmsBuffer
from clickatell_sms.diagnostics import debug_init, get_logger

logger = get_logger("transport")

DEFAULT_TIMEOUT = 5  # seconds, whole API call
DEFAULT_CONNECT_TIMEOUT = 5  # seconds, connection to the gateway
RESPONSE_CHUNK_SIZE = 1024

HTTP_VERSION = "HTTP/1.1"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"


class TransportCode(IntEnum):
    OK = 0
    INVALID_INPUT = 1
    CONNECT_ERROR = 2
    TIMEOUT = 3
    ERROR = 4


# -------------------------------------------------------------------
# Process-wide subsystem
# -------------------------------------------------------------------
class TransportSubsystem:
    """
    Acquire once at process start, release once at process end.
    Handles created in between borrow it; they never own it.
    """

    def __init__(self) -> None:
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def init(self, *, debug: bool = True) -> None:
        debug_init(debug)
        self._active = True
        logger.info("transport subsystem initialised")

    def shutdown(self) -> None:
        if self._active:
            logger.info("transport subsystem shut down")
        self._active = False

    def __enter__(self) -> "TransportSubsystem":
        if not self._active:
            self.init()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


_default_subsystem = TransportSubsystem()


def default_subsystem() -> TransportSubsystem:
    return _default_subsystem


def _is_read_timeout(exc: requests.exceptions.ConnectionError) -> bool:
    # iter_content wraps urllib3 read timeouts in ConnectionError
    return any(isinstance(arg, ReadTimeoutError) for arg in exc.args)


# -------------------------------------------------------------------
# Executor
# -------------------------------------------------------------------
class TransportExecutor:
    def __init__(
        self,
        subsystem: Optional[TransportSubsystem] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._subsystem = subsystem or _default_subsystem
        self._session = session or requests.Session()
        self._on_data: Optional[Callable[[bytes], int]] = None
        self._receiving = False
        self._closed = False

        self.headers: Dict[str, str] = {}
        self.timeout = DEFAULT_TIMEOUT
        self.connect_timeout = DEFAULT_CONNECT_TIMEOUT
        self.verbose = False
        self.http_version = HTTP_VERSION

        # output of the most recent request
        self.response: Optional[SmsBuffer] = None
        self.http_status = 0
        self.transport_code: Optional[TransportCode] = None

    @property
    def closed(self) -> bool:
        return self._closed

    # ---------------------------------------------------------
    # CONFIGURATION
    # ---------------------------------------------------------
    def configure(self, timeout: float = 0, connect_timeout: float = 0) -> None:
        self.verbose = False
        self.http_version = HTTP_VERSION
        self.timeout = timeout if timeout and timeout > 0 else DEFAULT_TIMEOUT
        self.connect_timeout = (
            connect_timeout if connect_timeout and connect_timeout > 0 else DEFAULT_CONNECT_TIMEOUT
        )
        self._on_data = self._capture

    def reset(self) -> None:
        if self.response is not None:
            self.response.destroy()
            self.response = None
        self.http_status = 0
        self.transport_code = None

    # ---------------------------------------------------------
    # RESPONSE CAPTURE
    # ---------------------------------------------------------
    def _capture(self, chunk: bytes) -> int:
        size = len(chunk)
        if size == 0:
            # end of transfer
            self._receiving = False
            return 0

        if not self._receiving:
            self._receiving = True
            if self.response is not None:
                self.response.destroy()
                self.response = None
                logger.warning("had to clear response data which should have been reset")

        if self.response is None:
            self.response = SmsBuffer.create(chunk)
            if self.response is None:
                logger.error("failed to allocate memory for response")
        elif not self.response.append(raw=chunk):
            logger.error("failed to append response data")

        return size

    # ---------------------------------------------------------
    # EXECUTION
    # ---------------------------------------------------------
    def execute(
        self,
        url: Optional[SmsBuffer],
        method: HttpMethod = HttpMethod.GET,
        body: Optional[SmsBuffer] = None,
    ) -> TransportCode:
        if (
            self._closed
            or self._on_data is None
            or not self._subsystem.active
            or url is None
            or not url.valid
            or len(url) < 1
        ):
            logger.error("execute: invalid parameter")
            self.transport_code = TransportCode.INVALID_INPUT
            return self.transport_code

        headers = dict(self.headers)
        data = None

        if method == HttpMethod.POST:
            if body is not None and body.valid and len(body) > 0:
                data = body.data
                headers["Content-Length"] = str(len(data))
                logger.debug("POST data:\n%s", body.text)
        elif method != HttpMethod.DELETE:
            method = HttpMethod.GET

        self._receiving = False
        # requests only bounds each socket read; the whole call is bounded here
        deadline = time.monotonic() + self.timeout
        try:
            resp = self._session.request(
                method.value,
                url.text,
                headers=headers,
                data=data,
                timeout=(self.connect_timeout, self.timeout),
                stream=True,
            )
            try:
                for chunk in resp.iter_content(chunk_size=RESPONSE_CHUNK_SIZE):
                    self._on_data(chunk)
                    if time.monotonic() > deadline:
                        raise requests.exceptions.ReadTimeout(
                            f"call exceeded {self.timeout}s", response=resp
                        )
                self._on_data(b"")
            finally:
                resp.close()
            self.http_status = resp.status_code
            self.transport_code = TransportCode.OK
        except requests.exceptions.Timeout as exc:
            logger.warning("%s request timed out: %s", method.value, exc)
            self.transport_code = TransportCode.TIMEOUT
        except requests.exceptions.ConnectionError as exc:
            if _is_read_timeout(exc):
                logger.warning("%s request timed out: %s", method.value, exc)
                self.transport_code = TransportCode.TIMEOUT
            else:
                logger.warning("%s request connection failed: %s", method.value, exc)
                self.transport_code = TransportCode.CONNECT_ERROR
        except requests.exceptions.RequestException as exc:
            logger.warning("%s request failed: %s", method.value, exc)
            self.transport_code = TransportCode.ERROR
        finally:
            self._receiving = False

        if self.transport_code != TransportCode.OK and self.response is not None:
            # partial body of a failed transfer
            self.response.destroy()
            self.response = None

        logger.debug("%s-Request URL:\n%s", method.value, url.text)
        logger.debug("HTTP response code:\n%d", self.http_status)
        logger.debug("Response:\n%s", "" if self.response is None else self.response.text)

        return self.transport_code

    def close(self) -> None:
        if self._closed:
            return
        self.reset()
        self.headers = {}
        self._on_data = None
        self._session.close()
        self._closed = True
