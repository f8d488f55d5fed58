"""Simulated RN2483 module on a pty pair.

The simulator answers the command grammar on the master side of a pty; the
driver opens the slave side (port_name) like any other serial device. It
keeps an in-memory parameter table, acknowledges long-running commands with
"ok" and emits their asynchronous results after a short delay.

Used by the command-line --loopback mode and by the integration tests.
"""

import logging
import os
import pty
import select
import sys
import threading
import time
import tty
from collections import deque

from common.line import to_hex
from common.protocol import ENCODING, INVALID_PARAMETER, LINE_TERMINATOR, OK

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "RN2483 1.0.5 Oct 31 2018 15:06:52"
PAUSE_LENGTH_MS = 4294967245

DEFAULT_PARAMETERS = {
    "mac devaddr": "00000000",
    "mac deveui": "0004A30B001A2B3C",
    "mac appeui": "0000000000000000",
    "mac dr": "5",
    "mac pwridx": "1",
    "mac adr": "off",
    "mac ch freq 0": "868100000",
    "mac ch freq 1": "868300000",
    "mac ch freq 2": "868500000",
    "mac ch dcycle 0": "302",
    "mac ch dcycle 1": "302",
    "mac ch dcycle 2": "302",
    "mac ch status 0": "on",
    "mac ch status 1": "on",
    "mac ch status 2": "on",
    "radio mod": "lora",
    "radio freq": "868100000",
    "radio pwr": "1",
    "radio sf": "sf12",
    "radio bw": "125",
    "radio cr": "4/5",
    "radio wdt": "15000",
    "radio snr": "-5",
    "sys ver": DEFAULT_VERSION,
    "sys vdd": "3300",
    "sys hweui": "0004A30B001A2B3C",
}

Response = tuple[float, str]  # (delay before sending, line)


class ModuleSimulator:
    """Fake RN2483 answering on a pty.

    Attributes:
        port_name: Slave pty path to open with the driver.
        parameters: Values returned by get commands, updated by set commands.
        downlinks: (port, payload) pairs answered to the next mac tx instead
            of mac_tx_ok.
        packets: Payloads answered to the next radio rx instead of radio_err.
        commands: Every command line received, in order.
        join_answer: Event sent after a mac join is acknowledged.
    """

    def __init__(self, event_delay_s: float = 0.2) -> None:
        if sys.platform not in ("linux", "darwin"):
            raise RuntimeError(
                f"Module simulator only supported on Linux/macOS, not {sys.platform}"
            )
        self.event_delay_s = event_delay_s
        self.parameters: dict[str, str] = dict(DEFAULT_PARAMETERS)
        self.nvm: dict[int, int] = {}
        self.downlinks: deque[tuple[int, bytes]] = deque()
        self.packets: deque[bytes] = deque()
        self.commands: list[str] = []
        self.join_answer = "accepted"

        self._master_fd, self._slave_fd = pty.openpty()
        tty.setraw(self._slave_fd)
        self.port_name = os.ttyname(self._slave_fd)
        self._running = False
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> None:
        self._running = True
        self._thread.start()
        logger.info(f"Module simulator: {self.port_name}")

    def close(self) -> None:
        self._running = False
        if self._thread.is_alive():
            self._thread.join(timeout=2.0)
        os.close(self._master_fd)
        os.close(self._slave_fd)
        logger.info("Closed module simulator")

    def __enter__(self) -> "ModuleSimulator":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Serving loop
    # -------------------------------------------------------------------------

    def _serve(self) -> None:
        buffer = b""
        while self._running:
            ready, _, _ = select.select([self._master_fd], [], [], 0.05)
            if not ready:
                continue
            try:
                buffer += os.read(self._master_fd, 4096)
            except OSError:
                break
            while LINE_TERMINATOR in buffer:
                raw, buffer = buffer.split(LINE_TERMINATOR, 1)
                line = raw.decode(ENCODING, errors="replace")
                self.commands.append(line)
                logger.debug(f"Simulator received: {line}")
                for delay, answer in self.respond(line):
                    if delay > 0:
                        time.sleep(delay)
                    self._send(answer)

    def _send(self, line: str) -> None:
        logger.debug(f"Simulator sent: {line}")
        try:
            os.write(self._master_fd, line.encode() + LINE_TERMINATOR)
        except OSError as e:
            logger.warning(f"Simulator write failed: {e}")

    # -------------------------------------------------------------------------
    # Command handling
    # -------------------------------------------------------------------------

    def respond(self, line: str) -> list[Response]:
        """Return the lines the module sends in answer to one command."""
        fields = line.split()
        if len(fields) < 2:
            return [(0, INVALID_PARAMETER)]
        namespace, verb, args = fields[0], fields[1], fields[2:]

        match (namespace, verb):
            case ("mac", "join"):
                return self._join(args)
            case ("mac", "tx"):
                return self._mac_tx(args)
            case ("radio", "tx"):
                return self._radio_tx(args)
            case ("radio", "rx"):
                return self._radio_rx(args)
            case ("sys", "reset"):
                return [(self.event_delay_s, self.parameters["sys ver"])]
            case ("sys", "sleep"):
                return self._sleep(args)
            case ("sys", "get") | ("sys", "set") if args[:1] == ["nvm"]:
                return self._nvm(verb, args[1:])
            case ("mac", "pause"):
                return [(0, str(PAUSE_LENGTH_MS))]
            case ("mac", "resume") | ("mac", "save"):
                return [(0, OK)]
            case ("mac", "reset"):
                return [(0, OK if args in (["433"], ["868"]) else INVALID_PARAMETER)]
            case (_, "get"):
                key = " ".join([namespace] + args)
                return [(0, self.parameters.get(key, INVALID_PARAMETER))]
            case (_, "set") if len(args) >= 2:
                self.parameters[" ".join([namespace] + args[:-1])] = args[-1]
                return [(0, OK)]
        return [(0, INVALID_PARAMETER)]

    def _join(self, args: list[str]) -> list[Response]:
        if args not in (["otaa"], ["abp"]):
            return [(0, INVALID_PARAMETER)]
        return [(0, OK), (self.event_delay_s, self.join_answer)]

    def _mac_tx(self, args: list[str]) -> list[Response]:
        if len(args) != 3 or args[0] not in ("cnf", "uncnf") or not _is_hex(args[2]):
            return [(0, INVALID_PARAMETER)]
        if self.downlinks:
            port, payload = self.downlinks.popleft()
            return [(0, OK), (self.event_delay_s, f"mac_rx {port} {to_hex(payload)}")]
        return [(0, OK), (self.event_delay_s, "mac_tx_ok")]

    def _radio_tx(self, args: list[str]) -> list[Response]:
        if len(args) != 1 or not _is_hex(args[0]):
            return [(0, INVALID_PARAMETER)]
        return [(0, OK), (self.event_delay_s, "radio_tx_ok")]

    def _radio_rx(self, args: list[str]) -> list[Response]:
        if len(args) != 1 or not args[0].isdigit():
            return [(0, INVALID_PARAMETER)]
        if self.packets:
            # The module separates the payload with two spaces
            return [(0, OK), (self.event_delay_s, f"radio_rx  {to_hex(self.packets.popleft())}")]
        return [(0, OK), (self.event_delay_s, "radio_err")]

    def _sleep(self, args: list[str]) -> list[Response]:
        if len(args) != 1 or not args[0].isdigit() or int(args[0]) < 100:
            return [(0, INVALID_PARAMETER)]
        return [(int(args[0]) / 1000, OK)]

    def _nvm(self, verb: str, args: list[str]) -> list[Response]:
        try:
            values = [int(a, 16) for a in args]
        except ValueError:
            return [(0, INVALID_PARAMETER)]
        if not values or not 0x300 <= values[0] <= 0x3FF:
            return [(0, INVALID_PARAMETER)]
        if verb == "get" and len(values) == 1:
            return [(0, f"{self.nvm.get(values[0], 0xFF):02X}")]
        if verb == "set" and len(values) == 2 and values[1] <= 0xFF:
            self.nvm[values[0]] = values[1]
            return [(0, OK)]
        return [(0, INVALID_PARAMETER)]


def _is_hex(text: str) -> bool:
    try:
        bytes.fromhex(text)
    except ValueError:
        return False
    return len(text) > 0
