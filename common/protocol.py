"""Protocol definitions for the RN2483 driver.

Contains:
- Transport Protocol for type checking
- Wire constants (line terminator, sentinel strings, namespaces)
- Enumerations of the module's fixed string arguments
- Timing constants for the long-running transactions
- Logging configuration
"""

import logging
from enum import Enum
from typing import Protocol

# TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class Transport(Protocol):
    """Protocol for the line transport the engine drives.

    read_line() must not block longer than the transport's read timeout and
    returns b"" when no line is currently buffered.
    """

    def write(self, line: str, /) -> None: ...
    def read_line(self) -> bytes: ...
    def flush(self) -> None: ...


# Every line on the wire ends with CR LF
LINE_TERMINATOR = b"\r\n"
ENCODING = "ascii"

# Sentinel strings
OK = "ok"
INVALID_PARAMETER = "invalid_param"

NAMESPACES = ("mac", "radio", "sys")


class JoinMode(str, Enum):
    """Network join procedures."""

    OTAA = "otaa"
    ABP = "abp"


class UplinkType(str, Enum):
    """LoRaWAN uplink types."""

    CONFIRMED = "cnf"
    UNCONFIRMED = "uncnf"


class Modulation(str, Enum):
    """Radio modulations."""

    LORA = "lora"
    FSK = "fsk"


# Spreading factor -> wire token
SPREADING_FACTORS = {
    7: "sf7",
    8: "sf8",
    9: "sf9",
    10: "sf10",
    11: "sf11",
    12: "sf12",
}

# Bandwidth in kHz -> wire token
BANDWIDTHS = {
    125: "125",
    250: "250",
    500: "500",
}

# Coding rate denominator -> wire token
CODING_RATES = {
    5: "4/5",
    6: "4/6",
    7: "4/7",
    8: "4/8",
}

# Supported LoRaWAN bands in MHz
BANDS = (433, 868)

# Application port range for MAC uplinks
MIN_APP_PORT = 1
MAX_APP_PORT = 223

# Maximum radio payload (LoRa modulation)
MAX_RADIO_PAYLOAD = 255

# Default timing constants
DEFAULT_POLL_INTERVAL_S = 1.0  # Cadence of the poll-until-event loop
JOIN_TIMEOUT_S = 15.0  # Wait for accepted/denied after mac join
MAC_TX_TIMEOUT_S = 15.0  # Wait for mac_tx_ok / mac_rx after mac tx
RADIO_TX_TIMEOUT_S = 5.0  # Wait for radio_tx_ok after radio tx
RADIO_RX_TIMEOUT_S = 15.0  # Default caller deadline for radio rx
MAC_PAUSE_MARGIN_MS = 100  # Slack required before a pause window ends
