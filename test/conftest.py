"""pytest configuration and fixtures for RN2483 driver tests.

Provides:
- MockTransport: Scripted line transport for executor/transaction tests
- MockSerialPort: Stand-in for serial.Serial for SerialTransport tests
- FakeClock: Monotonic clock advanced only by sleep()
- Module simulator fixtures for integration tests
- Markers for unit vs integration tests
"""

import sys
from collections import deque
from collections.abc import Callable, Generator

import pytest

from common.device import SerialConfig, SerialTransport
from common.protocol import LINE_TERMINATOR
from engine.executor import Executor
from simulator import ModuleSimulator


class MockTransport:
    """Scripted transport.

    Each read_line() pops the next queued response; an empty queue (or a
    queued b"") reads as silence. Every written line is recorded.
    """

    def __init__(self) -> None:
        self.responses: deque[bytes] = deque()
        self.writes: list[str] = []
        self.reads = 0
        self.flushes = 0
        self.write_error: Exception | None = None
        self.read_error: Exception | None = None

    def queue(self, *lines: str) -> "MockTransport":
        """Queue response lines, each followed by the CR LF terminator."""
        for line in lines:
            self.responses.append(line.encode() + LINE_TERMINATOR)
        return self

    def queue_silence(self, count: int = 1) -> "MockTransport":
        """Queue reads that return nothing."""
        self.responses.extend([b""] * count)
        return self

    def write(self, line: str, /) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(line)

    def read_line(self) -> bytes:
        self.reads += 1
        if self.read_error is not None:
            raise self.read_error
        if self.responses:
            return self.responses.popleft()
        return b""

    def flush(self) -> None:
        self.flushes += 1
        self.responses.clear()


class MockSerialPort:
    """Mock of the serial.Serial methods SerialTransport uses."""

    def __init__(self) -> None:
        self.incoming: deque[bytes] = deque()
        self.written = bytearray()
        self.is_open = True
        self.input_resets = 0
        self.output_resets = 0

    def inject(self, data: bytes) -> None:
        """Inject data as if received from the module."""
        self.incoming.append(data)

    def write(self, data: bytes) -> int:
        self.written += data
        return len(data)

    def readline(self) -> bytes:
        if self.incoming:
            return self.incoming.popleft()
        return b""

    @property
    def in_waiting(self) -> int:
        return sum(len(chunk) for chunk in self.incoming)

    def reset_input_buffer(self) -> None:
        self.input_resets += 1
        self.incoming.clear()

    def reset_output_buffer(self) -> None:
        self.output_resets += 1

    def close(self) -> None:
        self.is_open = False


class FakeClock:
    """Monotonic clock that only advances when sleep() is called."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test (requires a pty)")


@pytest.fixture
def transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def executor(transport: MockTransport, clock: FakeClock) -> Executor:
    """Executor over the mock transport, driven by the fake clock (1s tick)."""
    return Executor(transport, tick_s=1.0, clock=clock.monotonic, sleep=clock.sleep)


@pytest.fixture
def serial_port() -> MockSerialPort:
    return MockSerialPort()


@pytest.fixture
def make_serial_transport(
    serial_port: MockSerialPort,
) -> Callable[[], SerialTransport]:
    """Return a factory for SerialTransport wrapping the mock serial port."""

    def factory() -> SerialTransport:
        config = SerialConfig(device="/dev/ttyMOCK0", baudrate=57600, read_timeout_ms=100)
        return SerialTransport(config, port=serial_port)  # type: ignore[arg-type]

    return factory


@pytest.fixture
def module_sim() -> Generator[ModuleSimulator, None, None]:
    """Start a module simulator on a pty.

    Requires: Linux or macOS.
    """
    if sys.platform not in ("linux", "darwin"):
        pytest.skip("module simulator requires a pty")

    with ModuleSimulator(event_delay_s=0.05) as sim:
        yield sim


@pytest.fixture
def sim_executor(module_sim: ModuleSimulator) -> Generator[Executor, None, None]:
    """Executor over a real SerialTransport connected to the simulator."""
    config = SerialConfig(device=module_sim.port_name, baudrate=57600, read_timeout_ms=500)
    with SerialTransport(config) as transport:
        yield Executor(transport, tick_s=0.05)
