# clickatell_sms/__init__.py
from .buffer import SmsBuffer
from .errors import ClickatellError
from .gateway import (
    FormCredentials,
    GatewayHandle,
    HandleState,
    TokenCredential,
    handle_init,
    handle_shutdown,
)
from .request_builder import ApiMode
from .responses import extract_message_id, extract_message_ids
from .transport import HttpMethod, TransportCode, TransportSubsystem, default_subsystem


def init(debug: bool = True) -> None:
    """
    Start using the library: acquire the process-wide transport subsystem.
    Must be called before any handle executes a request.
    """
    default_subsystem().init(debug=debug)


def shutdown() -> None:
    default_subsystem().shutdown()
