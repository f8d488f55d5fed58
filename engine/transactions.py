"""Long-running transactions for the RN2483 driver.

Contains:
- join: mac join, waits for accepted/denied
- mac_tx: LoRaWAN uplink, waits for confirmation or downlink data
- radio_tx: raw radio transmit, waits for radio_tx_ok
- radio_rx: blocking raw radio receive

Each one sends its command, checks the immediate "ok", then polls for the
asynchronous result while holding the transport. Protocol-level failures are
reported in the returned result, never raised.
"""

import logging

from common.command import command
from common.outcome import (
    Ack,
    AsyncEvent,
    MalformedEventError,
    NamedError,
    Outcome,
    ProtocolRejection,
    Timeout,
    TransportFailure,
    outcome_error,
)
from common.protocol import (
    JOIN_TIMEOUT_S,
    MAC_TX_TIMEOUT_S,
    MAX_APP_PORT,
    MAX_RADIO_PAYLOAD,
    MIN_APP_PORT,
    RADIO_RX_TIMEOUT_S,
    RADIO_TX_TIMEOUT_S,
    JoinMode,
    UplinkType,
)
from engine.classify import (
    ACCEPTED,
    BUSY,
    INVALID_DATA_LEN,
    MAC_ERR,
    MAC_RX,
    MAC_TX_OK,
    RADIO_ERR,
    RADIO_RX,
    RADIO_TX_OK,
    classify,
    is_event,
    is_ok,
)
from engine.downlink import DownlinkCallback, dispatch_downlink
from engine.executor import Executor
from engine.result import (
    JoinResult,
    JoinState,
    RadioTxResult,
    RadioTxState,
    ReceiveResult,
    ReceiveState,
    UplinkResult,
    UplinkState,
)

logger = logging.getLogger(__name__)

# Nominal radio air time assumed when checking the mac pause window
_RADIO_AIRTIME_MS = 2000


def _ack_failure(outcome: Outcome, context: str) -> Exception:
    """Describe a non-"ok" acknowledgement as an exception."""
    if isinstance(outcome, Ack):
        # Re-classify so error tokens surface as ProtocolRejection
        outcome = classify(outcome.text)
    return outcome_error(outcome, context)


def _warn_if_mac_active(executor: Executor, context: str) -> None:
    if not executor.state.is_mac_paused(_RADIO_AIRTIME_MS, executor.clock()):
        logger.warning(f"{context}: LoRaWAN stack is not paused, the module may answer busy")


# -----------------------------------------------------------------------------
# mac join
# -----------------------------------------------------------------------------


def join(
    executor: Executor,
    mode: JoinMode | str = JoinMode.OTAA,
    timeout_s: float = JOIN_TIMEOUT_S,
) -> JoinResult:
    """Join the configured network.

    The module answers "ok" when the join procedure starts and later
    "accepted" or "denied". Any other ack ends the join immediately.

    Args:
        executor: Executor owning the transport.
        mode: JoinMode.OTAA or JoinMode.ABP.
        timeout_s: Deadline for the accepted/denied event.

    Returns:
        JoinResult in state ACCEPTED on success.

    Raises:
        ValueError: If mode is not a join mode.
    """
    mode = JoinMode(mode)
    cmd = command("mac", "join", mode)
    start = executor.clock()
    logger.debug(f"mac join: {JoinState.REQUESTED.name}")

    with executor.transaction(cmd) as ack:
        if not is_ok(ack):
            error = _ack_failure(ack, "mac join")
            logger.warning(f"mac join error: {error}")
            state = JoinState.FAILED if isinstance(ack, TransportFailure) else JoinState.REJECTED
            return JoinResult(state=state, error=error, elapsed_s=executor.clock() - start)

        logger.info(f"Joining network ({mode.value})")
        logger.debug(f"mac join: {JoinState.WAITING_FOR_ACCEPT.name}")
        outcome = executor.poll(timeout_s=timeout_s)

    elapsed = executor.clock() - start
    match outcome:
        case AsyncEvent(kind=kind) if kind == ACCEPTED:
            logger.info(f"Join accepted after {elapsed:.1f}s")
            return JoinResult(state=JoinState.ACCEPTED, elapsed_s=elapsed)
        case Timeout():
            logger.warning(f"mac join error: no answer within {timeout_s}s")
            return JoinResult(
                state=JoinState.TIMED_OUT,
                error=outcome_error(outcome, "mac join"),
                elapsed_s=elapsed,
            )
        case TransportFailure():
            return JoinResult(
                state=JoinState.FAILED,
                error=outcome_error(outcome, "mac join"),
                elapsed_s=elapsed,
            )

    # Any other line (denied, an error token, garbage) means the join failed
    text = outcome.text
    logger.warning(f"mac join error: {text}")
    return JoinResult(
        state=JoinState.DENIED,
        error=ProtocolRejection(text, f"mac join: {text}"),
        elapsed_s=elapsed,
    )


# -----------------------------------------------------------------------------
# mac tx
# -----------------------------------------------------------------------------


def _uplink_result(
    outcome: Outcome, callback: DownlinkCallback | None, elapsed: float
) -> UplinkResult:
    """Map the terminal poll outcome of a mac tx to its result."""
    match outcome:
        case AsyncEvent(kind=kind) if kind == MAC_TX_OK:
            return UplinkResult(state=UplinkState.CONFIRMED, elapsed_s=elapsed)
        case AsyncEvent(kind=kind) if kind == MAC_RX:
            downlink = dispatch_downlink(outcome, callback)
            return UplinkResult(
                state=UplinkState.DOWNLINK_RECEIVED, downlink=downlink, elapsed_s=elapsed
            )
        case NamedError(code=code) if code == MAC_ERR:
            state = UplinkState.RADIO_ERROR
        case NamedError(code=code) if code == INVALID_DATA_LEN:
            state = UplinkState.INVALID_LENGTH
        case Timeout():
            logger.warning("mac tx error: timed out")
            return UplinkResult(
                state=UplinkState.TIMED_OUT,
                error=outcome_error(outcome, "mac tx"),
                elapsed_s=elapsed,
            )
        case TransportFailure():
            return UplinkResult(
                state=UplinkState.FAILED,
                error=outcome_error(outcome, "mac tx"),
                elapsed_s=elapsed,
            )
        case _:
            state = UplinkState.REJECTED

    error = outcome_error(outcome, "mac tx")
    logger.warning(f"mac tx error: {error}")
    return UplinkResult(state=state, error=error, elapsed_s=elapsed)


def mac_tx(
    executor: Executor,
    confirmed: bool,
    port: int,
    data: bytes,
    callback: DownlinkCallback | None = None,
    timeout_s: float = MAC_TX_TIMEOUT_S,
) -> UplinkResult:
    """Transmit data on an application port over LoRaWAN.

    A confirmed uplink is acknowledged by the network; the module itself
    retransmits it as configured with mac set retx, this driver never does.
    If the network answers with data, callback(port, payload) is invoked
    before this function returns and the uplink counts as successful.

    Args:
        executor: Executor owning the transport.
        confirmed: Send a confirmed (cnf) instead of unconfirmed (uncnf) uplink.
        port: Application port, 1..223.
        data: Payload, at least one byte.
        callback: Receives downlink data; None to ignore it.
        timeout_s: Deadline for mac_tx_ok / mac_rx.

    Raises:
        ValueError: If port is out of range or data is empty.
    """
    if not MIN_APP_PORT <= port <= MAX_APP_PORT:
        raise ValueError(f"Invalid port number ({port}), must be in [{MIN_APP_PORT}, {MAX_APP_PORT}]")
    if len(data) == 0:
        raise ValueError("Trying to send zero bytes")

    uplink_type = UplinkType.CONFIRMED if confirmed else UplinkType.UNCONFIRMED
    cmd = command("mac", "tx", uplink_type, port, data)
    start = executor.clock()
    logger.debug(f"mac tx: {UplinkState.SENT.name}")

    with executor.transaction(cmd) as ack:
        if not is_ok(ack):
            error = _ack_failure(ack, "mac tx")
            logger.warning(f"mac tx error: {error}")
            state = UplinkState.FAILED if isinstance(ack, TransportFailure) else UplinkState.REJECTED
            return UplinkResult(state=state, error=error, elapsed_s=executor.clock() - start)

        logger.debug(f"Uplink ({uplink_type.value}) of {len(data)} bytes on port {port} accepted")
        logger.debug(f"mac tx: {UplinkState.WAITING_FOR_CONFIRMATION.name}")
        outcome = executor.poll(timeout_s=timeout_s)
        # The callback runs before the transport is released
        return _uplink_result(outcome, callback, executor.clock() - start)


# -----------------------------------------------------------------------------
# radio tx / rx
# -----------------------------------------------------------------------------


def _radio_tx_terminal(outcome: Outcome) -> bool:
    return is_event(outcome, RADIO_TX_OK) or outcome == NamedError(RADIO_ERR)


def radio_tx(
    executor: Executor,
    data: bytes,
    timeout_s: float = RADIO_TX_TIMEOUT_S,
) -> RadioTxResult:
    """Transmit data on the raw radio (the LoRaWAN stack should be paused).

    Only radio_tx_ok and radio_err end the wait; other lines are ignored.

    Raises:
        ValueError: If data is empty or longer than the radio allows.
    """
    if len(data) == 0:
        raise ValueError("Trying to send zero bytes")
    if len(data) > MAX_RADIO_PAYLOAD:
        raise ValueError(f"Payload too long ({len(data)} bytes, max {MAX_RADIO_PAYLOAD})")

    _warn_if_mac_active(executor, "radio tx")
    cmd = command("radio", "tx", data)
    start = executor.clock()
    logger.debug(f"radio tx: {RadioTxState.SENT.name}")

    with executor.transaction(cmd) as ack:
        if not is_ok(ack):
            error = _ack_failure(ack, "radio tx")
            logger.warning(f"radio tx error: {error}")
            state = RadioTxState.FAILED if isinstance(ack, TransportFailure) else RadioTxState.REJECTED
            return RadioTxResult(state=state, error=error, elapsed_s=executor.clock() - start)

        logger.debug(f"radio tx: {RadioTxState.WAITING_FOR_COMPLETION.name}")
        outcome = executor.poll(_radio_tx_terminal, timeout_s=timeout_s)

    elapsed = executor.clock() - start
    match outcome:
        case AsyncEvent():
            return RadioTxResult(state=RadioTxState.TRANSMITTED, elapsed_s=elapsed)
        case NamedError():
            state = RadioTxState.RADIO_ERROR
        case Timeout():
            state = RadioTxState.TIMED_OUT
        case _:
            state = RadioTxState.FAILED

    error = outcome_error(outcome, "radio tx")
    logger.warning(f"radio tx error: {error}")
    return RadioTxResult(state=state, error=error, elapsed_s=elapsed)


def _radio_rx_terminal(outcome: Outcome) -> bool:
    return is_event(outcome, RADIO_RX) or outcome == NamedError(RADIO_ERR)


def radio_rx(
    executor: Executor,
    window: int = 0,
    timeout_s: float | None = RADIO_RX_TIMEOUT_S,
) -> ReceiveResult:
    """Open the receiver and wait for one packet.

    The window is the number of symbols for LoRa and milliseconds for FSK;
    0 enables continuous reception. The module ends reception with radio_err
    when its watchdog (radio set wdt) expires.

    Args:
        executor: Executor owning the transport.
        window: Receive window, 0..65535.
        timeout_s: Host-side deadline; None blocks until the module answers.

    Raises:
        ValueError: If window is out of range.
    """
    if not 0 <= window <= 0xFFFF:
        raise ValueError(f"Invalid receive window ({window})")

    _warn_if_mac_active(executor, "radio rx")
    cmd = command("radio", "rx", window)
    start = executor.clock()

    with executor.transaction(cmd) as ack:
        if not is_ok(ack):
            error = _ack_failure(ack, "radio rx")
            logger.warning(f"radio rx error: {error}")
            if isinstance(ack, TransportFailure):
                state = ReceiveState.FAILED
            elif isinstance(ack, Ack) and ack.text == BUSY:
                state = ReceiveState.BUSY
            else:
                state = ReceiveState.REJECTED
            return ReceiveResult(state=state, error=error, elapsed_s=executor.clock() - start)

        logger.debug(f"radio rx: {ReceiveState.LISTENING.name}")
        outcome = executor.poll(_radio_rx_terminal, timeout_s=timeout_s)

    elapsed = executor.clock() - start
    match outcome:
        case AsyncEvent(args=(data_text,)):
            try:
                payload = bytes.fromhex(data_text)
            except ValueError:
                error = MalformedEventError(f"radio_rx invalid hex data: {data_text}")
                logger.warning(f"radio rx error: {error}")
                return ReceiveResult(state=ReceiveState.MALFORMED, error=error, elapsed_s=elapsed)
            logger.debug(f"Received {len(payload)} bytes after {elapsed:.1f}s")
            return ReceiveResult(state=ReceiveState.RECEIVED, payload=payload, elapsed_s=elapsed)
        case AsyncEvent():
            error = MalformedEventError(f"radio_rx expects <data>, got {outcome.text!r}")
            logger.warning(f"radio rx error: {error}")
            return ReceiveResult(state=ReceiveState.MALFORMED, error=error, elapsed_s=elapsed)
        case NamedError():
            state = ReceiveState.RADIO_ERROR
        case Timeout():
            state = ReceiveState.TIMED_OUT
        case _:
            state = ReceiveState.FAILED

    error = outcome_error(outcome, "radio rx")
    logger.warning(f"radio rx error: {error}")
    return ReceiveResult(state=state, error=error, elapsed_s=elapsed)
