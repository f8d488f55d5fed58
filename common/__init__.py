"""Common modules for the RN2483 driver.

This package contains the wire-level pieces shared by the engine and the
parameter accessors:
- protocol: Transport Protocol, wire constants, timing constants
- line: Line sanitizing and encoding
- command: Immutable Command lines
- outcome: Outcome variants and TransactionError hierarchy
- device: Serial device setup and the pyserial SerialTransport
- report: Reporting abstractions
"""

from common.command import Command, command
from common.line import sanitize, sanitize_text
from common.outcome import (
    Ack,
    AsyncEvent,
    InvalidParameter,
    MalformedEventError,
    NamedError,
    Outcome,
    ProtocolRejection,
    Timeout,
    TransactionError,
    TransactionInProgressError,
    TransactionTimeout,
    TransportError,
    TransportFailure,
    Unrecognized,
    UnrecognizedResponseError,
    outcome_error,
)
from common.protocol import (
    DEFAULT_POLL_INTERVAL_S,
    JOIN_TIMEOUT_S,
    MAC_TX_TIMEOUT_S,
    RADIO_RX_TIMEOUT_S,
    RADIO_TX_TIMEOUT_S,
    JoinMode,
    Modulation,
    Transport,
    UplinkType,
)

__all__ = [
    # Protocol
    "Transport",
    "JoinMode",
    "Modulation",
    "UplinkType",
    "DEFAULT_POLL_INTERVAL_S",
    "JOIN_TIMEOUT_S",
    "MAC_TX_TIMEOUT_S",
    "RADIO_RX_TIMEOUT_S",
    "RADIO_TX_TIMEOUT_S",
    # Lines and commands
    "Command",
    "command",
    "sanitize",
    "sanitize_text",
    # Outcomes
    "Ack",
    "AsyncEvent",
    "InvalidParameter",
    "NamedError",
    "Outcome",
    "Timeout",
    "TransportFailure",
    "Unrecognized",
    "outcome_error",
    # Exceptions
    "MalformedEventError",
    "ProtocolRejection",
    "TransactionError",
    "TransactionInProgressError",
    "TransactionTimeout",
    "TransportError",
    "UnrecognizedResponseError",
]
