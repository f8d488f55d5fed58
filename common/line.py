"""Line encoding/decoding for the RN2483 serial protocol.

Lines are human-readable ASCII terminated by CR LF:
  <namespace> <verb> [args...]\\r\\n

Responses carry the same 2-byte terminator, which is stripped by sanitize()
before any comparison or numeric parse.
"""

from common.protocol import ENCODING, LINE_TERMINATOR

TERMINATOR_SIZE = len(LINE_TERMINATOR)


def sanitize(raw: bytes) -> bytes:
    """Strip the line terminator from a raw response.

    Inputs shorter than the terminator are returned unchanged.
    """
    if len(raw) >= TERMINATOR_SIZE:
        return raw[:-TERMINATOR_SIZE]
    return raw


def sanitize_text(raw: bytes) -> str:
    """Sanitize a raw response and decode it for text comparison."""
    return sanitize(raw).decode(ENCODING, errors="replace")


def encode_line(line: str) -> bytes:
    """Encode a command line for the wire, appending the terminator."""
    return line.encode(ENCODING) + LINE_TERMINATOR


def to_hex(data: bytes) -> str:
    """Render bytes the way the module expects: upper-case, no prefix."""
    return data.hex().upper()
