"""Transaction outcomes and errors for the RN2483 driver.

Contains:
- Outcome variants: Ack, InvalidParameter, NamedError, AsyncEvent,
  Unrecognized, Timeout, TransportFailure
- TransactionError and its subclasses
- outcome_error: map a failure Outcome to the matching exception
"""

from dataclasses import dataclass, field

from common.protocol import INVALID_PARAMETER


class TransactionError(Exception):
    """Base class for failed transactions."""

    pass


class TransportError(TransactionError):
    """Raised when writing to or reading from the transport fails."""

    pass


class ProtocolRejection(TransactionError):
    """Raised when the module rejects a command (invalid_param or a named error)."""

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        super().__init__(message or f"Module rejected command: {code}")


class TransactionTimeout(TransactionError):
    """Raised when the module did not answer before the deadline."""

    pass


class MalformedEventError(TransactionError):
    """Raised when a known async event fails field-level parsing."""

    pass


class UnrecognizedResponseError(TransactionError):
    """Raised when a response matches none of the known vocabulary."""

    pass


class TransactionInProgressError(TransactionError):
    """Raised when a command is issued while another transaction is outstanding."""

    pass


@dataclass(frozen=True)
class Ack:
    """Immediate acknowledgement (or bare value) returned by the module."""

    text: str


@dataclass(frozen=True)
class InvalidParameter:
    """The module rejected an argument."""

    text: str = INVALID_PARAMETER


@dataclass(frozen=True)
class NamedError:
    """A terminal error token from the fixed vocabulary."""

    code: str

    @property
    def text(self) -> str:
        return self.code


@dataclass(frozen=True)
class AsyncEvent:
    """A recognized asynchronous event, split on whitespace."""

    kind: str
    args: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return " ".join((self.kind,) + self.args)


@dataclass(frozen=True)
class Unrecognized:
    """A line matching none of the known vocabulary."""

    text: str


@dataclass(frozen=True)
class Timeout:
    """No terminal line arrived before the deadline."""

    elapsed_s: float = 0.0


@dataclass(frozen=True)
class TransportFailure:
    """The transport failed to write or read."""

    error: Exception = field(compare=False)


Outcome = (
    Ack
    | InvalidParameter
    | NamedError
    | AsyncEvent
    | Unrecognized
    | Timeout
    | TransportFailure
)


def outcome_error(outcome: Outcome, context: str = "") -> TransactionError:
    """Return the exception describing a failure Outcome.

    Ack and AsyncEvent are not failures by themselves; callers that did not
    expect them get an UnrecognizedResponseError carrying the text.
    """
    prefix = f"{context}: " if context else ""
    match outcome:
        case TransportFailure(error=error):
            return TransportError(f"{prefix}{error}")
        case Timeout(elapsed_s=elapsed_s):
            return TransactionTimeout(f"{prefix}no answer after {elapsed_s:.1f}s")
        case InvalidParameter():
            return ProtocolRejection(INVALID_PARAMETER, f"{prefix}invalid parameter")
        case NamedError(code=code):
            return ProtocolRejection(code, f"{prefix}{code}")
        case Ack(text=text) | Unrecognized(text=text):
            return UnrecognizedResponseError(f"{prefix}unexpected response {text!r}")
        case AsyncEvent():
            return UnrecognizedResponseError(
                f"{prefix}unexpected event {outcome.text!r}"
            )
    raise TypeError(f"Not an outcome: {outcome!r}")
