"""Serial device setup for the RN2483 driver.

Contains:
- SerialConfig: Port settings, read from the environment by default
- log_device_info: Log information about a serial device
- open_serial: Open and configure a serial port
- SerialTransport: Line transport over a pyserial port
"""

import logging
import os
from dataclasses import dataclass, field

import serial
import serial.tools.list_ports

from common.line import encode_line
from common.protocol import LINE_TERMINATOR, TRACE

logger = logging.getLogger(__name__)

DEFAULT_DEVICE = "/dev/ttyUSB0"
DEFAULT_BAUDRATE = 57600  # RN2483 factory setting
DEFAULT_READ_TIMEOUT_MS = 100


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


@dataclass
class SerialConfig:
    """Serial port settings (environment: RN2483_DEVICE, RN2483_BAUDRATE, RN2483_READ_TIMEOUT_MS)."""

    device: str = field(default_factory=lambda: os.environ.get("RN2483_DEVICE", DEFAULT_DEVICE))
    baudrate: int = field(
        default_factory=lambda: _env_int("RN2483_BAUDRATE", DEFAULT_BAUDRATE)
    )
    read_timeout_ms: int = field(
        default_factory=lambda: _env_int("RN2483_READ_TIMEOUT_MS", DEFAULT_READ_TIMEOUT_MS)
    )

    @property
    def read_timeout_s(self) -> float:
        return self.read_timeout_ms / 1000


def log_device_info(device: str) -> None:
    """Log information about a serial device."""
    real_path = os.path.realpath(device)
    if real_path.startswith("/dev/pts/"):
        logger.info(f"Device: {device} -> {real_path} (pty)")
        return

    ports = [p for p in serial.tools.list_ports.comports() if p.device == device]
    if len(ports) == 0:
        logger.info(f"Device: {device} (not in port list)")
        return
    if len(ports) > 1:
        raise RuntimeError(f"Multiple ports found for device {device}")

    info = ports[0]
    logger.info(f"Device: {info.device}")
    logger.info(f"Description: {info.description}")
    if info.vid is not None:
        logger.info(f"VID:PID: {info.vid:04x}:{info.pid:04x}")


def open_serial(config: SerialConfig) -> serial.Serial:
    """Open and configure a serial port (8N1, no flow control)."""
    log_device_info(config.device)
    ser = serial.Serial(
        port=config.device,
        baudrate=config.baudrate,
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
        xonxoff=False,
        rtscts=False,
        timeout=config.read_timeout_s,
        write_timeout=1.0,
    )
    ser.reset_input_buffer()
    ser.reset_output_buffer()
    logger.debug(
        f"Serial port: baudrate={ser.baudrate}, read_timeout={config.read_timeout_ms}ms"
    )
    return ser


class SerialTransport:
    """Line transport over a pyserial port.

    The port is opened with connect() (or on entering the context manager)
    and must be reopened for changes made with set_name(), set_baud() or
    set_timeout() to take effect.
    """

    def __init__(self, config: SerialConfig | None = None, port: serial.Serial | None = None) -> None:
        self.config = config or SerialConfig()
        self._serial = port
        self._rx_buffer = bytearray()  # Partial line awaiting its terminator

    @property
    def is_connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def connect(self) -> None:
        """Open the configured serial device and discard stale input."""
        self._serial = open_serial(self.config)
        self._rx_buffer.clear()
        logger.info(f"Connected to {self.config.device}")

    def disconnect(self) -> None:
        """Close the serial device; a no-op if nothing is connected."""
        if self._serial is None:
            return
        if self._serial.is_open:
            self._serial.close()
            logger.info(f"Closed {self.config.device}")
        self._serial = None

    def set_name(self, device: str) -> None:
        self.config.device = device
        logger.debug(f"Serial device: {device}")

    def set_baud(self, baudrate: int) -> None:
        self.config.baudrate = baudrate
        logger.debug(f"Baud rate: {baudrate}")

    def set_timeout(self, read_timeout_ms: int) -> None:
        self.config.read_timeout_ms = read_timeout_ms
        logger.debug(f"Read timeout: {read_timeout_ms}ms")

    def _port(self) -> serial.Serial:
        if self._serial is None:
            raise serial.SerialException("Serial port is not connected")
        return self._serial

    def write(self, line: str, /) -> None:
        """Write one command line, appending the terminator."""
        data = encode_line(line)
        self._port().write(data)
        logger.log(TRACE, f"{len(data)} bytes written: {data!r}")

    def _take_line(self) -> bytes | None:
        end = self._rx_buffer.find(LINE_TERMINATOR)
        if end < 0:
            return None
        end += len(LINE_TERMINATOR)
        line = bytes(self._rx_buffer[:end])
        del self._rx_buffer[:end]
        return line

    def read_line(self) -> bytes:
        """Read one complete CR LF terminated line.

        A line split across the read timeout is held back until its
        terminator arrives; b"" is returned while no complete line is
        available.
        """
        line = self._take_line()
        if line is not None:
            return line

        data = self._port().readline()
        if data:
            logger.log(TRACE, f"{len(data)} bytes read: {data!r}")
            self._rx_buffer += data

        line = self._take_line()
        if line is None:
            if self._rx_buffer:
                logger.log(TRACE, f"Holding partial line: {bytes(self._rx_buffer)!r}")
            return b""
        return line

    def flush(self) -> None:
        """Discard anything pending in either direction."""
        port = self._port()
        drained = port.in_waiting + len(self._rx_buffer)
        port.reset_input_buffer()
        port.reset_output_buffer()
        self._rx_buffer.clear()
        if drained:
            logger.debug(f"Drained {drained} stale bytes from input buffer")

    def __enter__(self) -> "SerialTransport":
        if not self.is_connected:
            self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()
