"""LoRaWAN (mac) parameter accessors for the RN2483 driver.

Flat get/set commands built on get_parameter / set_parameter. Setters
validate their arguments before any I/O and raise ValueError; both raise a
TransactionError subclass when the module rejects or does not answer.

mac join and mac tx are long-running and live in engine.transactions.
"""

import logging

from commands.values import check_hex, parse_on_off, parse_uint
from common.command import command
from common.protocol import BANDS
from engine.executor import Executor, get_parameter, set_parameter

logger = logging.getLogger(__name__)

MAX_DATA_RATE = 5
MAX_POWER_INDEX = 5
MAX_CHANNEL = 15
MIN_CONFIGURABLE_CHANNEL = 3  # Channels 0-2 are the fixed default channels
MAX_DCYCLE = 0xFFFF

# Allowed channel frequency bands in Hz
FREQUENCY_BANDS = ((433_050_000, 434_790_000), (863_000_000, 870_000_000))


def _check_channel(channel_id: int, minimum: int = 0) -> None:
    if not minimum <= channel_id <= MAX_CHANNEL:
        raise ValueError(f"Invalid channel id ({channel_id}), must be in [{minimum}, {MAX_CHANNEL}]")


def _in_band(frequency: int) -> bool:
    return any(low <= frequency <= high for low, high in FREQUENCY_BANDS)


# -----------------------------------------------------------------------------
# Stack control
# -----------------------------------------------------------------------------


def mac_reset(executor: Executor, band: int) -> None:
    """Reset the LoRaWAN stack and load the defaults for band (433 or 868)."""
    if band not in BANDS:
        raise ValueError(f"Invalid band ({band}), must be one of {BANDS}")
    set_parameter(executor, command("mac", "reset", band))
    executor.state.resume()


def mac_pause(executor: Executor) -> int:
    """Pause the LoRaWAN stack so the radio can be used directly.

    Returns the pause length in milliseconds granted by the module
    (0 means the stack could not be paused).
    """
    text = get_parameter(executor, command("mac", "pause"))
    length_ms = parse_uint(text, 32)
    if length_ms > 0:
        executor.state.pause(length_ms, executor.clock())
    logger.debug(f"LoRaWAN stack paused for {length_ms}ms")
    return length_ms


def mac_resume(executor: Executor) -> None:
    """Resume the LoRaWAN stack after mac_pause()."""
    set_parameter(executor, command("mac", "resume"))
    executor.state.resume()


def mac_save(executor: Executor) -> None:
    """Store the LoRaWAN configuration in the module's EEPROM."""
    set_parameter(executor, command("mac", "save"))


# -----------------------------------------------------------------------------
# Addresses and keys
# -----------------------------------------------------------------------------


def get_device_address(executor: Executor) -> str:
    """Return the 4-byte device address as 8 hex characters."""
    return get_parameter(executor, command("mac", "get", "devaddr"))


def set_device_address(executor: Executor, address: str) -> None:
    address = check_hex(address, 8, "address")
    set_parameter(executor, command("mac", "set", "devaddr", address))


def get_device_eui(executor: Executor) -> str:
    """Return the 8-byte device EUI as 16 hex characters."""
    return get_parameter(executor, command("mac", "get", "deveui"))


def set_device_eui(executor: Executor, eui: str) -> None:
    eui = check_hex(eui, 16, "eui")
    set_parameter(executor, command("mac", "set", "deveui", eui))


def get_application_eui(executor: Executor) -> str:
    """Return the 8-byte application EUI as 16 hex characters."""
    return get_parameter(executor, command("mac", "get", "appeui"))


def set_application_eui(executor: Executor, eui: str) -> None:
    eui = check_hex(eui, 16, "eui")
    set_parameter(executor, command("mac", "set", "appeui", eui))


def set_network_session_key(executor: Executor, key: str) -> None:
    key = check_hex(key, 32, "key")
    set_parameter(executor, command("mac", "set", "nwkskey", key))


def set_application_session_key(executor: Executor, key: str) -> None:
    key = check_hex(key, 32, "key")
    set_parameter(executor, command("mac", "set", "appskey", key))


def set_application_key(executor: Executor, key: str) -> None:
    key = check_hex(key, 32, "key")
    set_parameter(executor, command("mac", "set", "appkey", key))


# -----------------------------------------------------------------------------
# Data rate, power, ADR
# -----------------------------------------------------------------------------


def get_data_rate(executor: Executor) -> int:
    """Return the data rate, 0 (SF12BW125) to 5 (SF7BW125)."""
    return parse_uint(get_parameter(executor, command("mac", "get", "dr")), 8)


def set_data_rate(executor: Executor, dr: int) -> None:
    if not 0 <= dr <= MAX_DATA_RATE:
        raise ValueError(f"Invalid data rate ({dr})")
    set_parameter(executor, command("mac", "set", "dr", dr))


def get_power_index(executor: Executor) -> int:
    """Return the power index (1 = 14 dBm ... 5 = 2 dBm; 0 = 20 dBm on 433 MHz)."""
    return parse_uint(get_parameter(executor, command("mac", "get", "pwridx")), 8)


def set_power_index(executor: Executor, index: int) -> None:
    """Set the power index, [1-5] on 868 MHz and [0-5] on 433 MHz."""
    if not 0 <= index <= MAX_POWER_INDEX:
        raise ValueError(f"Invalid power index ({index})")
    set_parameter(executor, command("mac", "set", "pwridx", index))


def get_adr(executor: Executor) -> bool:
    """Return True if adaptive data rate is enabled."""
    return parse_on_off(get_parameter(executor, command("mac", "get", "adr")))


def set_adr(executor: Executor, enabled: bool) -> None:
    set_parameter(executor, command("mac", "set", "adr", bool(enabled)))


def set_link_check(executor: Executor, interval_s: int) -> None:
    """Set the link check interval in seconds (0 disables it)."""
    if not 0 <= interval_s <= 0xFFFF:
        raise ValueError(f"Invalid link check interval ({interval_s})")
    set_parameter(executor, command("mac", "set", "linkchk", interval_s))


# -----------------------------------------------------------------------------
# Channels
# -----------------------------------------------------------------------------


def get_channel_frequency(executor: Executor, channel_id: int) -> int:
    """Return the frequency of a channel in Hz."""
    _check_channel(channel_id)
    text = get_parameter(executor, command("mac", "get", "ch", "freq", channel_id))
    return parse_uint(text, 32)


def set_channel_frequency(executor: Executor, channel_id: int, frequency: int) -> None:
    """Set the frequency in Hz of a configurable channel (3-15)."""
    _check_channel(channel_id, MIN_CONFIGURABLE_CHANNEL)
    if not _in_band(frequency):
        raise ValueError(f"Invalid frequency ({frequency})")
    set_parameter(executor, command("mac", "set", "ch", "freq", channel_id, frequency))


def get_channel_duty_cycle(executor: Executor, channel_id: int) -> float:
    """Return the duty cycle of a channel as a percentage."""
    _check_channel(channel_id)
    text = get_parameter(executor, command("mac", "get", "ch", "dcycle", channel_id))
    return 100 / (parse_uint(text, 16) + 1)


def set_channel_duty_cycle(executor: Executor, channel_id: int, percentage: float) -> None:
    """Set the duty cycle of a channel, given as a percentage."""
    _check_channel(channel_id)
    if not 0 < percentage <= 100:
        raise ValueError(f"Invalid duty cycle ({percentage}%)")
    # The module takes 100 / percentage - 1, saturated to 16 bits
    value = min(int(100 / percentage - 1), MAX_DCYCLE)
    set_parameter(executor, command("mac", "set", "ch", "dcycle", channel_id, value))


def get_channel_status(executor: Executor, channel_id: int) -> bool:
    """Return True if the channel is enabled."""
    _check_channel(channel_id)
    text = get_parameter(executor, command("mac", "get", "ch", "status", channel_id))
    return parse_on_off(text)


def set_channel_status(executor: Executor, channel_id: int, enabled: bool) -> None:
    _check_channel(channel_id)
    set_parameter(executor, command("mac", "set", "ch", "status", channel_id, bool(enabled)))
