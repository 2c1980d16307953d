"""Tests for the gateway handle (lifecycle and the six API calls)."""

import json
import logging
import time

import pytest
import requests

from clickatell_sms.errors import ClickatellError
from clickatell_sms.gateway import (
    FormCredentials,
    GatewayHandle,
    HandleState,
    TokenCredential,
    handle_init,
    handle_shutdown,
)
from clickatell_sms.request_builder import ApiMode
from clickatell_sms.transport import TransportCode
from tests.conftest import make_response

BASE = "https://api.clickatell.com/"


@pytest.fixture
def http_handle(subsystem, session) -> GatewayHandle:
    handle = handle_init(
        ApiMode.HTTP, username="u", password="p", api_id="1", subsystem=subsystem, session=session
    )
    yield handle
    handle.shutdown()


@pytest.fixture
def rest_handle(subsystem, session) -> GatewayHandle:
    handle = handle_init(ApiMode.REST, api_key="tok123", api_id="2517153", subsystem=subsystem, session=session)
    yield handle
    handle.shutdown()


def _request(session):
    args, kwargs = session.request.call_args
    return args[0], args[1], kwargs


class TestHandleInit:
    def test_http_requires_password(self, subsystem, session):
        assert handle_init(ApiMode.HTTP, username="u", password="", api_id="1", subsystem=subsystem, session=session) is None

    def test_http_requires_username(self, subsystem, session):
        assert handle_init(ApiMode.HTTP, password="p", api_id="1", subsystem=subsystem, session=session) is None

    def test_rest_with_token_and_api_id(self, subsystem, session):
        handle = handle_init(ApiMode.REST, api_key="tok", api_id="7", subsystem=subsystem, session=session)
        assert handle is not None
        assert handle.state == HandleState.READY
        assert handle.token_credential == TokenCredential(token="tok")

    def test_rest_requires_token(self, subsystem, session):
        assert handle_init(ApiMode.REST, username="u", password="p", api_id="7", subsystem=subsystem, session=session) is None

    def test_rest_token_must_be_latin1(self, subsystem, session):
        assert handle_init(ApiMode.REST, api_key="tok€", api_id="7", subsystem=subsystem, session=session) is None
        session.close.assert_called_once()

    def test_api_id_required(self, subsystem, session):
        assert handle_init(ApiMode.REST, api_key="tok", api_id="", subsystem=subsystem, session=session) is None

    def test_unknown_mode(self, subsystem, session):
        assert handle_init("soap", api_key="tok", api_id="7", subsystem=subsystem, session=session) is None

    def test_mode_accepts_string(self, subsystem, session):
        handle = handle_init("http", username="u", password="p", api_id="1", subsystem=subsystem, session=session)
        assert handle.api_mode == ApiMode.HTTP

    def test_default_timeouts(self, subsystem, session):
        handle = handle_init(ApiMode.REST, api_key="tok", api_id="7", subsystem=subsystem, session=session)
        handle.get_balance()
        assert session.request.call_args.kwargs["timeout"] == (5, 5)

    def test_custom_timeouts(self, subsystem, session):
        handle = handle_init(ApiMode.REST, api_key="tok", api_id="7", timeout=9, connect_timeout=2, subsystem=subsystem, session=session)
        handle.get_balance()
        assert session.request.call_args.kwargs["timeout"] == (2, 9)


class TestCredentials:
    def test_http_credentials(self, http_handle):
        assert http_handle.form_credentials == FormCredentials(username="u", password="p")
        with pytest.raises(ClickatellError):
            http_handle.token_credential

    def test_rest_credentials(self, rest_handle):
        with pytest.raises(ClickatellError):
            rest_handle.form_credentials


class TestDefaultHeaders:
    def test_rest_headers(self, rest_handle):
        assert rest_handle.headers == {
            "X-Version": "1",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": "Bearer tok123",
        }

    def test_http_headers(self, http_handle):
        assert http_handle.headers == {
            "Connection": "keep-alive",
            "Cache-Control": "max-age=0",
            "Origin": "null",
        }

    def test_headers_can_be_replaced(self, rest_handle, session):
        rest_handle.headers = {"Authorization": "Bearer other"}
        rest_handle.get_balance()
        assert session.request.call_args.kwargs["headers"] == {"Authorization": "Bearer other"}


class TestHttpApi:
    def test_send_message(self, http_handle, session):
        session.request.return_value = make_response(b"ID: 205e85d0578314037a96175249fc6a2b")

        result = http_handle.send_message("hi there", ["111", "222"])

        assert result == "ID: 205e85d0578314037a96175249fc6a2b"
        method, url, kwargs = _request(session)
        assert method == "GET"
        assert url == BASE + "http/sendmsg.php?user=u&password=p&api_id=1&text=hi+there&to=111,222"
        assert kwargs["data"] is None

    def test_credentials_are_encoded(self, subsystem, session):
        handle = handle_init(ApiMode.HTTP, username="me@x", password="p&ss word", api_id="1", subsystem=subsystem, session=session)
        handle.get_balance()
        _, url, _ = _request(session)
        assert url == BASE + "http/getbalance.php?user=me%40x&password=p%26ss+word&api_id=1"

    def test_get_status(self, http_handle, session):
        http_handle.get_status("abc123")
        method, url, _ = _request(session)
        assert method == "GET"
        assert url == BASE + "http/querymsg.php?user=u&password=p&api_id=1&apimsgid=abc123"

    def test_get_balance(self, http_handle, session):
        http_handle.get_balance()
        _, url, _ = _request(session)
        assert url == BASE + "http/getbalance.php?user=u&password=p&api_id=1"

    def test_get_charge(self, http_handle, session):
        http_handle.get_charge("abc123")
        _, url, _ = _request(session)
        assert url == BASE + "http/getmsgcharge.php?user=u&password=p&api_id=1&apimsgid=abc123"

    def test_get_coverage(self, http_handle, session):
        http_handle.get_coverage("2991000000")
        _, url, _ = _request(session)
        assert url == BASE + "utils/routecoverage.php?user=u&password=p&api_id=1&msisdn=2991000000"

    def test_stop_message_uses_get(self, http_handle, session):
        http_handle.stop_message("abc123")
        method, url, _ = _request(session)
        assert method == "GET"
        assert url == BASE + "http/delmsg.php?user=u&password=p&api_id=1&apimsgid=abc123"


class TestRestApi:
    def test_send_message_posts_json(self, rest_handle, session):
        reply = b'{"data":{"message":[{"accepted":true,"to":"111","apiMessageId":"77a4"}]}}'
        session.request.return_value = make_response(reply, status=202)

        result = rest_handle.send_message("hi", ["111"])

        assert result == reply.decode()
        assert rest_handle.http_status == 202
        method, url, kwargs = _request(session)
        assert method == "POST"
        assert url == BASE + "rest/message"
        assert kwargs["data"] == b'{"text":"hi","to":["111"]}'
        assert kwargs["headers"]["Authorization"] == "Bearer tok123"

    def test_send_text_is_not_percent_encoded(self, rest_handle, session):
        rest_handle.send_message("a b+c", ["111", "222"])
        body = session.request.call_args.kwargs["data"]
        assert json.loads(body) == {"text": "a b+c", "to": ["111", "222"]}

    def test_get_status(self, rest_handle, session):
        rest_handle.get_status("abc123")
        method, url, kwargs = _request(session)
        assert (method, url) == ("GET", BASE + "rest/message/abc123")
        assert kwargs["data"] is None

    def test_get_balance(self, rest_handle, session):
        rest_handle.get_balance()
        assert _request(session)[:2] == ("GET", BASE + "rest/account/balance")

    def test_get_charge(self, rest_handle, session):
        rest_handle.get_charge("abc123")
        assert _request(session)[:2] == ("GET", BASE + "rest/message/abc123")

    def test_get_coverage(self, rest_handle, session):
        rest_handle.get_coverage("27999123456")
        assert _request(session)[:2] == ("GET", BASE + "rest/coverage/27999123456")

    def test_stop_message_uses_delete(self, rest_handle, session):
        rest_handle.stop_message("abc123")
        assert _request(session)[:2] == ("DELETE", BASE + "rest/message/abc123")

    def test_escape_json_option(self, subsystem, session):
        handle = handle_init(ApiMode.REST, api_key="tok", api_id="7", escape_json=True, subsystem=subsystem, session=session)
        handle.send_message('say "hi"', ["111"])
        body = session.request.call_args.kwargs["data"]
        assert json.loads(body)["text"] == 'say "hi"'


class TestValidation:
    @pytest.mark.parametrize("msisdns", [[], None, ["111", ""]])
    def test_send_rejects_bad_destinations(self, rest_handle, session, msisdns):
        assert rest_handle.send_message("hi", msisdns) is None
        session.request.assert_not_called()
        assert rest_handle.state == HandleState.READY

    def test_send_rejects_empty_text(self, http_handle, session):
        assert http_handle.send_message("", ["111"]) is None
        session.request.assert_not_called()

    @pytest.mark.parametrize("op", ["get_status", "get_charge", "get_coverage", "stop_message"])
    def test_rejects_empty_identifier(self, rest_handle, session, op):
        assert getattr(rest_handle, op)("") is None
        session.request.assert_not_called()

    def test_non_latin1_text_is_rejected_before_io(self, rest_handle, session):
        assert rest_handle.send_message("✓ done", ["111"]) is None
        session.request.assert_not_called()
        assert rest_handle.state == HandleState.READY

    def test_non_latin1_identifier_is_rejected_before_io(self, rest_handle, session):
        assert rest_handle.get_status("✓") is None
        session.request.assert_not_called()


class TestFailures:
    def test_transport_failure_returns_none(self, rest_handle, session):
        session.request.side_effect = requests.exceptions.ConnectTimeout("slow")
        assert rest_handle.get_balance() is None
        assert rest_handle.transport_code == TransportCode.TIMEOUT

    def test_slow_body_is_cut_off_at_call_timeout(self, subsystem, session):
        def trickle(chunk_size):
            for digit in b"12345678":
                time.sleep(0.1)
                yield bytes([digit])

        resp = make_response()
        resp.iter_content.side_effect = trickle
        session.request.return_value = resp
        handle = handle_init(
            ApiMode.REST, api_key="tok", api_id="7", timeout=0.25, connect_timeout=1,
            subsystem=subsystem, session=session,
        )

        started = time.monotonic()
        assert handle.get_balance() is None
        assert time.monotonic() - started < 0.6
        assert handle.transport_code == TransportCode.TIMEOUT
        assert handle.response is None
        handle.shutdown()

    def test_handle_reusable_after_failure(self, rest_handle, session):
        session.request.side_effect = requests.exceptions.ConnectionError("down")
        assert rest_handle.get_balance() is None
        session.request.side_effect = None
        session.request.return_value = make_response(b'{"balance":1}')
        assert rest_handle.get_balance() == '{"balance":1}'
        assert rest_handle.transport_code == TransportCode.OK

    def test_empty_response_returns_none(self, rest_handle, session):
        session.request.return_value = make_response(b"", status=204)
        assert rest_handle.stop_message("abc") is None
        assert rest_handle.http_status == 204

    def test_each_call_resets_previous_response(self, rest_handle, session, caplog):
        session.request.return_value = make_response(b"first")
        rest_handle.get_balance()
        session.request.return_value = make_response(b"second")
        with caplog.at_level(logging.WARNING, logger="clickatell_sms"):
            assert rest_handle.get_balance() == "second"
        assert "should have been reset" not in caplog.text

    def test_returned_response_is_a_copy(self, rest_handle, session):
        session.request.return_value = make_response(b"first")
        result = rest_handle.get_balance()
        session.request.return_value = make_response(b"second")
        rest_handle.get_balance()
        assert result == "first"
        assert rest_handle.response == "second"


class TestShutdown:
    def test_shutdown_releases_everything(self, subsystem, session):
        handle = handle_init(ApiMode.HTTP, username="u", password="p", api_id="1", subsystem=subsystem, session=session)
        handle.get_balance()
        handle.shutdown()

        assert handle.is_shut_down
        assert handle.api_id is None
        assert handle.response is None
        assert handle.headers == {}
        session.close.assert_called_once()
        with pytest.raises(ClickatellError):
            handle.form_credentials

    def test_calls_after_shutdown_return_none(self, rest_handle, session):
        rest_handle.shutdown()
        assert rest_handle.get_balance() is None
        assert rest_handle.send_message("hi", ["111"]) is None
        session.request.assert_not_called()

    def test_shutdown_twice(self, rest_handle, session):
        rest_handle.shutdown()
        rest_handle.shutdown()
        session.close.assert_called_once()

    def test_handle_shutdown_none_is_noop(self):
        handle_shutdown(None)

    def test_handle_shutdown(self, rest_handle):
        handle_shutdown(rest_handle)
        assert rest_handle.state == HandleState.SHUT_DOWN

    def test_library_shutdown_blocks_io(self, rest_handle, subsystem, session):
        subsystem.shutdown()
        assert rest_handle.get_balance() is None
        assert rest_handle.transport_code == TransportCode.INVALID_INPUT
        session.request.assert_not_called()
