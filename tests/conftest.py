"""Shared test fixtures."""

from unittest.mock import MagicMock

import pytest

from clickatell_sms.diagnostics import debug_init
from clickatell_sms.transport import TransportSubsystem


def make_response(body: bytes = b"", status: int = 200, chunks=None) -> MagicMock:
    """A streamed requests.Response stand-in."""
    resp = MagicMock()
    resp.status_code = status
    if chunks is None:
        chunks = [body] if body else []
    resp.iter_content.return_value = chunks
    return resp


@pytest.fixture(autouse=True)
def _diagnostics_on():
    """Library diagnostics on for every test, off afterwards."""
    debug_init(True)
    yield
    debug_init(False)


@pytest.fixture
def subsystem():
    s = TransportSubsystem()
    s.init(debug=True)
    yield s
    s.shutdown()


@pytest.fixture
def session() -> MagicMock:
    """requests.Session stand-in answering every request with 200 OK."""
    s = MagicMock()
    s.request.return_value = make_response(b"OK")
    return s
