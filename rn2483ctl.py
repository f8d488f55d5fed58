#!/usr/bin/env python3
"""Command-line control for an RN2483 LoRa module."""

import argparse
import logging
import os
import sys
from collections.abc import Callable
from enum import IntEnum

import serial

from commands import mac, system
from common.command import Command
from common.device import SerialConfig, SerialTransport
from common.outcome import TransactionError
from common.protocol import (
    JOIN_TIMEOUT_S,
    MAC_TX_TIMEOUT_S,
    RADIO_RX_TIMEOUT_S,
    TRACE,
    JoinMode,
)
from common.report import ParameterReport
from engine.executor import Executor, get_parameter, set_parameter
from engine.report import TransactionReport
from engine.transactions import join, mac_tx, radio_rx, radio_tx
from simulator import ModuleSimulator

logger = logging.getLogger(__name__)

LOG_LEVELS = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]


class ExitCode(IntEnum):
    """Exit codes for rn2483ctl."""

    SUCCESS = 0
    TRANSACTION_FAILED = 1  # Module rejected the command or never answered
    CONNECTION_FAILED = 2  # Serial device could not be opened
    USAGE = 3


def _hex_bytes(text: str) -> bytes:
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a hex string: {text!r}")


# -----------------------------------------------------------------------------
# Subcommand handlers
# -----------------------------------------------------------------------------


INFO_QUERIES: dict[str, Callable[[Executor], object]] = {
    "version": system.version,
    "hweui": system.hardware_id,
    "vdd": system.voltage,
    "deveui": mac.get_device_eui,
    "devaddr": mac.get_device_address,
    "dr": mac.get_data_rate,
    "adr": mac.get_adr,
}


def cmd_info(executor: Executor, args: argparse.Namespace) -> ParameterReport:
    report = ParameterReport()
    for name, query in INFO_QUERIES.items():
        try:
            report.values[name] = str(query(executor))
        except TransactionError as e:
            report.values[name] = None
            report.errors[name] = e
    return report


def cmd_get(executor: Executor, args: argparse.Namespace) -> ParameterReport:
    cmd = Command(args.namespace, "get", tuple(args.parameter))
    name = " ".join(args.parameter)
    try:
        return ParameterReport(values={name: get_parameter(executor, cmd)})
    except TransactionError as e:
        return ParameterReport(values={name: None}, errors={name: e})


def cmd_set(executor: Executor, args: argparse.Namespace) -> ParameterReport:
    cmd = Command(args.namespace, "set", tuple(args.parameter) + (args.value,))
    name = " ".join(args.parameter)
    try:
        set_parameter(executor, cmd)
        return ParameterReport(values={name: args.value})
    except TransactionError as e:
        return ParameterReport(values={name: None}, errors={name: e})


def cmd_join(executor: Executor, args: argparse.Namespace) -> TransactionReport:
    return TransactionReport("Join", join(executor, args.mode, timeout_s=args.timeout))


def cmd_tx(executor: Executor, args: argparse.Namespace) -> TransactionReport:
    def on_downlink(port: int, payload: bytes) -> None:
        logger.info(f"Downlink on port {port}: {payload.hex().upper()}")

    result = mac_tx(
        executor,
        args.confirmed,
        args.port,
        args.data,
        callback=on_downlink,
        timeout_s=args.timeout,
    )
    return TransactionReport("Uplink", result)


def _pause_stack(executor: Executor, args: argparse.Namespace) -> None:
    if args.no_pause:
        return
    try:
        length_ms = mac.mac_pause(executor)
    except TransactionError as e:
        logger.warning(f"Could not pause LoRaWAN stack: {e}")
        return
    logger.info(f"LoRaWAN stack paused for {length_ms}ms")


def cmd_radio_tx(executor: Executor, args: argparse.Namespace) -> TransactionReport:
    _pause_stack(executor, args)
    return TransactionReport("Radio tx", radio_tx(executor, args.data))


def cmd_radio_rx(executor: Executor, args: argparse.Namespace) -> TransactionReport:
    _pause_stack(executor, args)
    timeout_s = None if args.timeout == 0 else args.timeout
    return TransactionReport("Radio rx", radio_rx(executor, args.window, timeout_s=timeout_s))


def cmd_reset(executor: Executor, args: argparse.Namespace) -> ParameterReport:
    try:
        system.sys_reset(executor)
    except TransactionError as e:
        return ParameterReport(values={"reset": None}, errors={"reset": e})
    return ParameterReport(values={"reset": "ok"})


# -----------------------------------------------------------------------------
# Argument parsing
# -----------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Control an RN2483 LoRa module over a serial port",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s info                          Show firmware version and identifiers
  %(prog)s -d /dev/ttyACM0 join          Join the network using OTAA
  %(prog)s tx --confirmed -p 1 CAFE      Send a confirmed uplink on port 1
  %(prog)s --loopback radio-tx 48656C6C6F  Transmit against the simulator
  %(prog)s get mac ch freq 0             Read a raw parameter
""",
    )
    config = SerialConfig()
    parser.add_argument(
        "-d",
        "--device",
        type=str,
        default=config.device,
        help=f"Serial device path (default: $RN2483_DEVICE or {config.device})",
    )
    parser.add_argument(
        "-b",
        "--baudrate",
        type=int,
        default=config.baudrate,
        help=f"Baud rate (default: {config.baudrate})",
    )
    parser.add_argument(
        "--read-timeout-ms",
        type=int,
        default=config.read_timeout_ms,
        help=f"Serial read timeout in milliseconds (default: {config.read_timeout_ms})",
    )
    parser.add_argument(
        "--loopback",
        action="store_true",
        help="Run against the built-in module simulator on a pty",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=os.environ.get("RN2483_LOG_LEVEL", "INFO").upper(),
        help="Logging level (default: $RN2483_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command")

    info_parser = subparsers.add_parser("info", help="Show module information")
    info_parser.set_defaults(handler=cmd_info)

    get_parser = subparsers.add_parser("get", help="Read a parameter")
    get_parser.add_argument("namespace", choices=["mac", "radio", "sys"])
    get_parser.add_argument("parameter", nargs="+", help="Parameter name and arguments")
    get_parser.set_defaults(handler=cmd_get)

    set_parser = subparsers.add_parser("set", help="Write a parameter")
    set_parser.add_argument("namespace", choices=["mac", "radio", "sys"])
    set_parser.add_argument("parameter", nargs="+", help="Parameter name and arguments")
    set_parser.add_argument("value", help="New value")
    set_parser.set_defaults(handler=cmd_set)

    join_parser = subparsers.add_parser("join", help="Join the LoRaWAN network")
    join_parser.add_argument(
        "-m", "--mode", choices=[m.value for m in JoinMode], default=JoinMode.OTAA.value
    )
    join_parser.add_argument(
        "-t", "--timeout", type=float, default=JOIN_TIMEOUT_S,
        help=f"Seconds to wait for accepted/denied (default: {JOIN_TIMEOUT_S})",
    )
    join_parser.set_defaults(handler=cmd_join)

    tx_parser = subparsers.add_parser("tx", help="Send a LoRaWAN uplink")
    tx_parser.add_argument("-c", "--confirmed", action="store_true", help="Confirmed uplink")
    tx_parser.add_argument("-p", "--port", type=int, default=1, help="Application port (default: 1)")
    tx_parser.add_argument(
        "-t", "--timeout", type=float, default=MAC_TX_TIMEOUT_S,
        help=f"Seconds to wait for confirmation (default: {MAC_TX_TIMEOUT_S})",
    )
    tx_parser.add_argument("data", type=_hex_bytes, help="Payload as hex")
    tx_parser.set_defaults(handler=cmd_tx)

    radio_tx_parser = subparsers.add_parser("radio-tx", help="Transmit on the raw radio")
    radio_tx_parser.add_argument("--no-pause", action="store_true", help="Do not pause the LoRaWAN stack first")
    radio_tx_parser.add_argument("data", type=_hex_bytes, help="Payload as hex")
    radio_tx_parser.set_defaults(handler=cmd_radio_tx)

    radio_rx_parser = subparsers.add_parser("radio-rx", help="Receive one packet on the raw radio")
    radio_rx_parser.add_argument("--no-pause", action="store_true", help="Do not pause the LoRaWAN stack first")
    radio_rx_parser.add_argument(
        "-w", "--window", type=int, default=0,
        help="Receive window in symbols (LoRa) or ms (FSK), 0 = continuous (default: 0)",
    )
    radio_rx_parser.add_argument(
        "-t", "--timeout", type=float, default=RADIO_RX_TIMEOUT_S,
        help=f"Seconds to wait for a packet, 0 = no limit (default: {RADIO_RX_TIMEOUT_S})",
    )
    radio_rx_parser.set_defaults(handler=cmd_radio_rx)

    reset_parser = subparsers.add_parser("reset", help="Reboot the module")
    reset_parser.set_defaults(handler=cmd_reset)

    return parser


def configure_logging(level_name: str) -> None:
    level = TRACE if level_name == "TRACE" else getattr(logging, level_name)
    logging.basicConfig(level=level)


def run(args: argparse.Namespace) -> int:
    """Open the module, run one subcommand and print its report. Returns exit code."""
    config = SerialConfig(
        device=args.device,
        baudrate=args.baudrate,
        read_timeout_ms=args.read_timeout_ms,
    )
    transport = SerialTransport(config)
    try:
        transport.connect()
    except (serial.SerialException, OSError) as e:
        logger.error(f"Failed to open serial port: {e}")
        return ExitCode.CONNECTION_FAILED

    try:
        executor = Executor(transport)
        try:
            report = args.handler(executor, args)
        except ValueError as e:
            logger.error(f"Invalid argument: {e}")
            return ExitCode.USAGE
        report.print()
        return ExitCode.SUCCESS if report.success() else ExitCode.TRANSACTION_FAILED
    finally:
        transport.disconnect()


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    configure_logging(args.log_level)

    if args.command is None:
        parser.print_help()
        return ExitCode.USAGE

    if args.loopback:
        with ModuleSimulator() as sim:
            args.device = sim.port_name
            return run(args)

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
