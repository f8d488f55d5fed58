"""Command/event transaction engine for the RN2483 driver.

This package drives the module's command/response protocol:
- classify: Map response lines to outcomes
- executor: Send one command, read its acknowledgement; get/set primitives
- poll: Poll for asynchronous events under a deadline
- downlink: Decode mac_rx events and dispatch them to a callback
- transactions: join, mac_tx, radio_tx, radio_rx
- result: Result types of the long-running transactions
- report: Command-line reports of transaction results
"""

from engine.classify import classify
from engine.downlink import DownlinkMessage, dispatch_downlink, parse_downlink
from engine.executor import Executor, ModuleState, get_parameter, set_parameter
from engine.poll import poll_until
from engine.result import (
    JoinResult,
    JoinState,
    RadioTxResult,
    RadioTxState,
    ReceiveResult,
    ReceiveState,
    TransactionResult,
    UplinkResult,
    UplinkState,
)
from engine.transactions import join, mac_tx, radio_rx, radio_tx

__all__ = [
    # Executor
    "Executor",
    "ModuleState",
    "get_parameter",
    "set_parameter",
    "classify",
    "poll_until",
    # Downlink
    "DownlinkMessage",
    "dispatch_downlink",
    "parse_downlink",
    # Transactions
    "join",
    "mac_tx",
    "radio_rx",
    "radio_tx",
    # Results
    "JoinResult",
    "JoinState",
    "RadioTxResult",
    "RadioTxState",
    "ReceiveResult",
    "ReceiveState",
    "TransactionResult",
    "UplinkResult",
    "UplinkState",
]
