"""Downlink demultiplexing for the RN2483 driver.

A confirmed or unconfirmed uplink may be answered by the network with data,
which the module reports instead of mac_tx_ok:

  mac_rx <port> <hex payload>

dispatch_downlink() decodes the event and hands the message to the caller's
callback, in-line, before the uplink transaction returns.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from common.outcome import AsyncEvent, MalformedEventError
from engine.classify import ASYNC_EVENTS, MAC_RX

logger = logging.getLogger(__name__)

MAX_PORT = 0xFF


@dataclass(frozen=True)
class DownlinkMessage:
    """Data received from the network on an application port."""

    port: int
    payload: bytes


DownlinkCallback = Callable[[int, bytes], None]


def parse_downlink(event: AsyncEvent) -> DownlinkMessage:
    """Decode a mac_rx event.

    Raises:
        MalformedEventError: If the event is not mac_rx, has the wrong number
            of fields, or the port or payload do not parse.
    """
    if event.kind != MAC_RX:
        raise MalformedEventError(f"Not a downlink event: {event.text!r}")
    if len(event.args) != ASYNC_EVENTS[MAC_RX]:
        raise MalformedEventError(f"mac_rx expects <port> <data>, got {event.text!r}")

    port_text, data_text = event.args

    if not (port_text.isascii() and port_text.isdigit()) or int(port_text) > MAX_PORT:
        raise MalformedEventError(f"mac_rx invalid port: {port_text}")

    try:
        payload = bytes.fromhex(data_text)
    except ValueError:
        raise MalformedEventError(f"mac_rx invalid hex data: {data_text}")

    return DownlinkMessage(port=int(port_text), payload=payload)


def dispatch_downlink(
    event: AsyncEvent, callback: DownlinkCallback | None
) -> DownlinkMessage | None:
    """Decode a mac_rx event and invoke callback(port, payload).

    A malformed event is logged and the callback skipped; it never fails the
    enclosing uplink, which the module did complete.

    Returns the decoded message, or None if it was malformed.
    """
    try:
        message = parse_downlink(event)
    except MalformedEventError as e:
        logger.warning(f"Dropping downlink: {e}")
        return None

    logger.debug(f"Downlink on port {message.port}: {len(message.payload)} bytes")
    if callback is not None:
        callback(message.port, message.payload)
    return message
