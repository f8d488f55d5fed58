"""System (sys) accessors for the RN2483 driver."""

import logging

from commands.values import parse_uint
from common.command import command
from common.outcome import Ack, Timeout, outcome_error
from engine.classify import classify, is_ok
from engine.executor import Executor, get_parameter, set_parameter

logger = logging.getLogger(__name__)

MIN_SLEEP_MS = 100
WAKE_MARGIN_S = 1.0  # Allowance past the requested sleep length
NVM_FIRST = 0x300
NVM_LAST = 0x3FF


def _check_nvm_address(address: int) -> None:
    if not NVM_FIRST <= address <= NVM_LAST:
        raise ValueError(f"NVM address {address:#x} out of range [{NVM_FIRST:X}-{NVM_LAST:X}]")


def sys_sleep(executor: Executor, length_ms: int) -> None:
    """Put the module to sleep for length_ms milliseconds (at least 100).

    The module answers "ok" only when it wakes up. If the acknowledgement
    read times out first, the answer is polled for until the sleep (plus a
    margin) has elapsed, so a late "ok" never answers the next command.

    Raises:
        ValueError: If length_ms is out of range.
        TransactionTimeout: If the module did not wake up in time.
        ProtocolRejection: If the module rejected the command.
    """
    if not MIN_SLEEP_MS <= length_ms <= 0xFFFFFFFF:
        raise ValueError(f"Invalid sleep length ({length_ms}ms), minimum is {MIN_SLEEP_MS}ms")
    cmd = command("sys", "sleep", length_ms)

    with executor.transaction(cmd) as outcome:
        if isinstance(outcome, Timeout):
            logger.debug(f"Module asleep, waiting up to {length_ms}ms for it to wake up")
            outcome = executor.poll(timeout_s=length_ms / 1000 + WAKE_MARGIN_S)

    if is_ok(outcome):
        return
    if isinstance(outcome, Ack):
        outcome = classify(outcome.text)
    raise outcome_error(outcome, cmd.line)


def sys_reset(executor: Executor) -> None:
    """Reset and restart the module.

    The module answers with its version string once rebooted; that line is
    not read but flushed, along with anything else pending.
    """
    executor.send_only(command("sys", "reset"))
    executor.flush()
    executor.state.resume()
    logger.info("Module reset")


def save_byte(executor: Executor, address: int, value: int) -> None:
    """Write one byte to the user EEPROM at address (0x300-0x3FF)."""
    _check_nvm_address(address)
    if not 0 <= value <= 0xFF:
        raise ValueError(f"Invalid byte value ({value})")
    set_parameter(executor, command("sys", "set", "nvm", f"{address:X}", f"{value:02X}"))


def read_byte(executor: Executor, address: int) -> int:
    """Read one byte from the user EEPROM at address (0x300-0x3FF)."""
    _check_nvm_address(address)
    text = get_parameter(executor, command("sys", "get", "nvm", f"{address:X}"))
    return parse_uint(text, 8, base=16)


def version(executor: Executor) -> str:
    """Return the hardware platform, firmware version and build date."""
    return get_parameter(executor, command("sys", "get", "ver"))


def voltage(executor: Executor) -> int:
    """Return the supply voltage in millivolts."""
    return parse_uint(get_parameter(executor, command("sys", "get", "vdd")), 16)


def hardware_id(executor: Executor) -> str:
    """Return the preprogrammed hardware EUI as 16 hex characters."""
    return get_parameter(executor, command("sys", "get", "hweui"))
