"""Response classification for the RN2483 driver.

Every sanitized line read from the module maps to exactly one Outcome:

  ok                    -> Ack("ok")
  invalid_param         -> InvalidParameter
  mac_err, radio_err... -> NamedError(code)
  accepted, mac_rx ...  -> AsyncEvent(kind, args)
  anything else         -> Unrecognized(text)

classify() is pure: the same line always yields an equal Outcome.
"""

from common.outcome import (
    Ack,
    AsyncEvent,
    InvalidParameter,
    NamedError,
    Outcome,
    Unrecognized,
)
from common.protocol import INVALID_PARAMETER, OK

# Terminal error tokens, both immediate and asynchronous
MAC_ERR = "mac_err"
INVALID_DATA_LEN = "invalid_data_len"
RADIO_ERR = "radio_err"
BUSY = "busy"

NAMED_ERRORS = frozenset(
    {
        MAC_ERR,
        INVALID_DATA_LEN,
        RADIO_ERR,
        BUSY,
        "not_joined",
        "no_free_ch",
        "silent",
        "frame_counter_err_rejoin_needed",
        "mac_paused",
        "keys_not_init",
        "invalid_class",
        "err",
    }
)

# Asynchronous event tags
ACCEPTED = "accepted"
DENIED = "denied"
MAC_TX_OK = "mac_tx_ok"
MAC_RX = "mac_rx"
RADIO_TX_OK = "radio_tx_ok"
RADIO_RX = "radio_rx"

# Event tag -> number of whitespace-separated arguments it carries
ASYNC_EVENTS = {
    ACCEPTED: 0,
    DENIED: 0,
    MAC_TX_OK: 0,
    RADIO_TX_OK: 0,
    MAC_RX: 2,  # <port> <hex payload>
    RADIO_RX: 1,  # <hex payload>
}


def classify(line: str) -> Outcome:
    """Classify one sanitized response line."""
    if line == OK:
        return Ack(OK)
    if line == INVALID_PARAMETER:
        return InvalidParameter()
    if line in NAMED_ERRORS:
        return NamedError(line)

    fields = line.split()
    if fields and fields[0] in ASYNC_EVENTS:
        # Field counts are checked by whoever parses the arguments
        return AsyncEvent(fields[0], tuple(fields[1:]))

    return Unrecognized(line)


def is_event(outcome: Outcome, *kinds: str) -> bool:
    """Return True if outcome is an AsyncEvent of one of the given kinds."""
    return isinstance(outcome, AsyncEvent) and outcome.kind in kinds


def is_ok(outcome: Outcome) -> bool:
    """Return True if outcome is the plain "ok" acknowledgement."""
    return isinstance(outcome, Ack) and outcome.text == OK
