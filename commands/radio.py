"""Radio parameter accessors for the RN2483 driver.

The radio settings are volatile and are only honored while the LoRaWAN stack
is paused (see commands.mac.mac_pause). radio tx and radio rx are
long-running and live in engine.transactions.
"""

from commands.values import parse_int, parse_uint
from common.command import command
from common.outcome import UnrecognizedResponseError
from common.protocol import BANDWIDTHS, CODING_RATES, SPREADING_FACTORS, Modulation
from engine.executor import Executor, get_parameter, set_parameter

MIN_POWER = -3
MAX_POWER = 15

# Allowed radio frequencies in Hz
FREQUENCY_BANDS = ((433_050_000, 434_790_000), (863_000_000, 870_000_000))


def get_modulation(executor: Executor) -> Modulation:
    """Return the current modulation."""
    text = get_parameter(executor, command("radio", "get", "mod"))
    try:
        return Modulation(text)
    except ValueError:
        raise UnrecognizedResponseError(f"Unknown modulation: {text!r}")


def set_modulation(executor: Executor, modulation: Modulation | str) -> None:
    modulation = Modulation(modulation)
    set_parameter(executor, command("radio", "set", "mod", modulation))


def get_frequency(executor: Executor) -> int:
    """Return the operating frequency in Hz."""
    return parse_uint(get_parameter(executor, command("radio", "get", "freq")), 32)


def set_frequency(executor: Executor, frequency: int) -> None:
    """Set the operating frequency in Hz (433.05-434.79 MHz or 863-870 MHz)."""
    if not any(low <= frequency <= high for low, high in FREQUENCY_BANDS):
        raise ValueError(f"Invalid frequency ({frequency})")
    set_parameter(executor, command("radio", "set", "freq", frequency))


def get_power(executor: Executor) -> int:
    """Return the output power setting in dBm, [-3, 15]."""
    return parse_int(get_parameter(executor, command("radio", "get", "pwr")), 8)


def set_power(executor: Executor, power: int) -> None:
    if not MIN_POWER <= power <= MAX_POWER:
        raise ValueError(f"Invalid power ({power})")
    set_parameter(executor, command("radio", "set", "pwr", power))


def get_spreading_factor(executor: Executor) -> int:
    """Return the spreading factor, [7, 12]."""
    text = get_parameter(executor, command("radio", "get", "sf"))
    if not text.startswith("sf"):
        raise UnrecognizedResponseError(f"Unknown spreading factor: {text!r}")
    return parse_uint(text[2:], 8)


def set_spreading_factor(executor: Executor, sf: int) -> None:
    if sf not in SPREADING_FACTORS:
        raise ValueError(f"Invalid spreading factor ({sf})")
    set_parameter(executor, command("radio", "set", "sf", SPREADING_FACTORS[sf]))


def get_bandwidth(executor: Executor) -> int:
    """Return the LoRa bandwidth in kHz."""
    return parse_uint(get_parameter(executor, command("radio", "get", "bw")), 16)


def set_bandwidth(executor: Executor, bandwidth_khz: int) -> None:
    if bandwidth_khz not in BANDWIDTHS:
        raise ValueError(f"Invalid bandwidth ({bandwidth_khz})")
    set_parameter(executor, command("radio", "set", "bw", BANDWIDTHS[bandwidth_khz]))


def get_coding_rate(executor: Executor) -> int:
    """Return the coding rate denominator (4/5 -> 5)."""
    text = get_parameter(executor, command("radio", "get", "cr"))
    for denominator, token in CODING_RATES.items():
        if token == text:
            return denominator
    raise UnrecognizedResponseError(f"Unknown coding rate: {text!r}")


def set_coding_rate(executor: Executor, denominator: int) -> None:
    if denominator not in CODING_RATES:
        raise ValueError(f"Invalid coding rate (4/{denominator})")
    set_parameter(executor, command("radio", "set", "cr", CODING_RATES[denominator]))


def get_watchdog(executor: Executor) -> int:
    """Return the receive/transmit watchdog time-out in milliseconds."""
    return parse_uint(get_parameter(executor, command("radio", "get", "wdt")), 32)


def set_watchdog(executor: Executor, timeout_ms: int) -> None:
    """Set the watchdog time-out in milliseconds (0 disables it)."""
    if not 0 <= timeout_ms <= 0xFFFFFFFF:
        raise ValueError(f"Invalid watchdog time-out ({timeout_ms})")
    set_parameter(executor, command("radio", "set", "wdt", timeout_ms))


def get_snr(executor: Executor) -> int:
    """Return the SNR of the last received packet in dB, [-128, 127]."""
    return parse_int(get_parameter(executor, command("radio", "get", "snr")), 8)
