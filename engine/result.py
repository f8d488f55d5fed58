"""Transaction result types for the RN2483 driver.

Contains:
- JoinState, UplinkState, RadioTxState, ReceiveState: States of the
  long-running transactions. The first members are the phases a call passes
  through (logged at debug level); results only ever carry terminal states.
- TransactionResult and its subclasses: What a long-running transaction
  reports back to the caller
"""

from dataclasses import dataclass
from enum import Enum

from engine.downlink import DownlinkMessage


class JoinState(Enum):
    """States of a single mac join transaction."""

    REQUESTED = "requested"  # Command sent, ack pending
    WAITING_FOR_ACCEPT = "waiting_for_accept"  # Ack was ok, polling
    ACCEPTED = "accepted"
    DENIED = "denied"
    TIMED_OUT = "timed_out"
    REJECTED = "rejected"  # Ack was not ok
    FAILED = "failed"  # Transport failure


class UplinkState(Enum):
    """States of a single mac tx transaction."""

    SENT = "sent"
    WAITING_FOR_CONFIRMATION = "waiting_for_confirmation"
    CONFIRMED = "confirmed"
    DOWNLINK_RECEIVED = "downlink_received"
    RADIO_ERROR = "radio_error"
    INVALID_LENGTH = "invalid_length"
    TIMED_OUT = "timed_out"
    REJECTED = "rejected"
    FAILED = "failed"


class RadioTxState(Enum):
    """States of a single radio tx transaction."""

    SENT = "sent"
    WAITING_FOR_COMPLETION = "waiting_for_completion"
    TRANSMITTED = "transmitted"
    RADIO_ERROR = "radio_error"
    TIMED_OUT = "timed_out"
    REJECTED = "rejected"
    FAILED = "failed"


class ReceiveState(Enum):
    """States of a single radio rx transaction."""

    LISTENING = "listening"
    RECEIVED = "received"
    RADIO_ERROR = "radio_error"
    BUSY = "busy"
    MALFORMED = "malformed"
    TIMED_OUT = "timed_out"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass
class TransactionResult:
    """Result of a long-running transaction.

    Attributes:
        state: Terminal state reached.
        error: Exception describing the failure, None on success.
        elapsed_s: Time from sending the command to the terminal state.
    """

    state: Enum
    error: Exception | None = None
    elapsed_s: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.success


@dataclass
class JoinResult(TransactionResult):
    """Result of a mac join."""

    state: JoinState


@dataclass
class UplinkResult(TransactionResult):
    """Result of a mac tx. downlink is set if the network answered with data."""

    state: UplinkState
    downlink: DownlinkMessage | None = None


@dataclass
class RadioTxResult(TransactionResult):
    """Result of a radio tx."""

    state: RadioTxState


@dataclass
class ReceiveResult(TransactionResult):
    """Result of a radio rx. payload holds the received packet."""

    state: ReceiveState
    payload: bytes | None = None
