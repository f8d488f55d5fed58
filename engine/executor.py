"""Transaction executor for the RN2483 driver.

Contains:
- ModuleState: State of the module's LoRaWAN stack, owned by the executor
- Executor: Sends one command and reads its immediate acknowledgement
- get_parameter / set_parameter: Generic accessors built on Executor.execute
"""

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from common.command import Command
from common.line import sanitize_text
from common.outcome import (
    Ack,
    InvalidParameter,
    Outcome,
    Timeout,
    TransactionInProgressError,
    TransportFailure,
    outcome_error,
)
from common.protocol import (
    DEFAULT_POLL_INTERVAL_S,
    INVALID_PARAMETER,
    MAC_PAUSE_MARGIN_MS,
    OK,
    Transport,
)
from engine.classify import classify
from engine.poll import Accept, accept_any, poll_until

logger = logging.getLogger(__name__)


@dataclass
class ModuleState:
    """LoRaWAN stack state as last reported by the module."""

    mac_paused: bool = False
    mac_paused_until: float = 0.0  # Executor clock time the pause window ends

    def pause(self, length_ms: int, now: float) -> None:
        self.mac_paused = True
        self.mac_paused_until = now + length_ms / 1000

    def resume(self) -> None:
        self.mac_paused = False
        self.mac_paused_until = 0.0

    def is_mac_paused(self, length_ms: int, now: float) -> bool:
        """Return True if the stack stays paused for length_ms more (plus margin)."""
        if not self.mac_paused:
            return False
        needed = (length_ms + MAC_PAUSE_MARGIN_MS) / 1000
        return now + needed < self.mac_paused_until


class Executor:
    """Runs command/response transactions against one transport.

    At most one transaction is outstanding at a time: execute() and
    transaction() raise TransactionInProgressError when called while
    another transaction has not finished.
    """

    def __init__(
        self,
        transport: Transport,
        tick_s: float = DEFAULT_POLL_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.transport = transport
        self.tick_s = tick_s
        self.clock = clock
        self.sleep = sleep
        self.state = ModuleState()
        self._outstanding: Command | None = None

    @property
    def busy(self) -> bool:
        return self._outstanding is not None

    def _send(self, cmd: Command) -> Outcome:
        """Write cmd and read exactly one acknowledgement line."""
        try:
            self.transport.write(cmd.line)
        except OSError as e:
            logger.warning(f"{cmd.line} error: {e}")
            return TransportFailure(e)
        logger.debug(f"Sent: {cmd.line}")

        start = self.clock()
        try:
            raw = self.transport.read_line()
        except OSError as e:
            logger.warning(f"{cmd.line} error: {e}")
            return TransportFailure(e)

        if not raw:
            logger.warning(f"{cmd.line} error: no answer")
            return Timeout(elapsed_s=self.clock() - start)

        text = sanitize_text(raw)
        logger.debug(f"Ack: {text!r}")
        if text == INVALID_PARAMETER:
            logger.warning(f"{cmd.line} error: invalid parameter")
            return InvalidParameter()
        return Ack(text)

    @contextmanager
    def transaction(self, cmd: Command) -> Iterator[Outcome]:
        """Send cmd and hold the transport until the block exits.

        Yields the acknowledgement Outcome. Long-running operations poll for
        their asynchronous result inside the block.
        """
        if self._outstanding is not None:
            raise TransactionInProgressError(
                f"Cannot send {cmd.line!r}: {self._outstanding.line!r} is still outstanding"
            )
        self._outstanding = cmd
        try:
            yield self._send(cmd)
        finally:
            self._outstanding = None

    def execute(self, cmd: Command) -> Outcome:
        """Send cmd and return its immediate acknowledgement."""
        with self.transaction(cmd) as outcome:
            return outcome

    def poll(self, accept: Accept = accept_any, timeout_s: float | None = None) -> Outcome:
        """Poll for an asynchronous result of the outstanding transaction."""
        if self._outstanding is None:
            raise RuntimeError("poll() called outside a transaction")
        return poll_until(
            self.transport,
            accept,
            timeout_s=timeout_s,
            tick_s=self.tick_s,
            clock=self.clock,
            sleep=self.sleep,
        )

    def send_only(self, cmd: Command) -> None:
        """Write cmd without reading an acknowledgement.

        Used by commands the module answers asynchronously (sys reset).
        Raises TransportError on write failure.
        """
        if self._outstanding is not None:
            raise TransactionInProgressError(
                f"Cannot send {cmd.line!r}: {self._outstanding.line!r} is still outstanding"
            )
        try:
            self.transport.write(cmd.line)
        except OSError as e:
            raise outcome_error(TransportFailure(e), cmd.line) from e
        logger.debug(f"Sent: {cmd.line}")

    def flush(self) -> None:
        """Discard pending transport input."""
        try:
            self.transport.flush()
        except OSError as e:
            logger.warning(f"Flush error: {e}")


def get_parameter(executor: Executor, cmd: Command) -> str:
    """Send a read-style command and return the bare value.

    Raises:
        TransportError: On write or read failure.
        TransactionTimeout: If the module did not answer.
        ProtocolRejection: If the module answered invalid_param.
    """
    outcome = executor.execute(cmd)
    if isinstance(outcome, Ack):
        return outcome.text
    raise outcome_error(outcome, cmd.line)


def set_parameter(executor: Executor, cmd: Command) -> None:
    """Send a write-style command and require the "ok" acknowledgement.

    Raises:
        TransportError: On write or read failure.
        TransactionTimeout: If the module did not answer.
        ProtocolRejection: If the module answered invalid_param or an error token.
        UnrecognizedResponseError: On any other answer.
    """
    outcome = executor.execute(cmd)
    if isinstance(outcome, Ack) and outcome.text == OK:
        return
    if isinstance(outcome, Ack):
        # An error token in place of "ok" (busy, mac_paused, ...)
        outcome = classify(outcome.text)
    raise outcome_error(outcome, cmd.line)
