"""Command construction for the RN2483 driver.

Contains:
- Command: immutable command line (namespace, verb, arguments)
- command: build a Command from Python values
"""

from dataclasses import dataclass
from enum import Enum

from common.line import encode_line, to_hex
from common.protocol import NAMESPACES


@dataclass(frozen=True)
class Command:
    """A single command line to send to the module."""

    namespace: str
    verb: str
    args: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.namespace not in NAMESPACES:
            raise ValueError(f"Unknown namespace: {self.namespace!r}")
        if not self.verb:
            raise ValueError("verb is required")
        for arg in self.args:
            if not arg or any(c.isspace() for c in arg):
                raise ValueError(f"Invalid argument: {arg!r}")

    @property
    def line(self) -> str:
        """Return the command as it appears on the wire, without terminator."""
        return " ".join((self.namespace, self.verb) + self.args)

    def encode(self) -> bytes:
        """Return the command encoded for the wire, with terminator."""
        return encode_line(self.line)

    def __str__(self) -> str:
        return self.line


def _format_arg(value: object) -> str:
    """Render one argument: bytes as hex, enums by value, rest via str()."""
    if isinstance(value, (bytes, bytearray)):
        return to_hex(bytes(value))
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


def command(namespace: str, verb: str, *args: object) -> Command:
    """Build a Command, formatting each argument for the wire.

    >>> command("mac", "tx", "cnf", 1, b"\\x01\\xab").line
    'mac tx cnf 1 01AB'
    """
    return Command(namespace, verb, tuple(_format_arg(a) for a in args))
