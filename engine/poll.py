"""Poll-until-event loop for long-running RN2483 transactions.

After a join, uplink or radio command is acknowledged, the module reports the
final result seconds later as an asynchronous line. poll_until() reads the
transport once per tick until a line the caller accepts as terminal arrives or
the deadline, measured from loop entry, elapses.
"""

import logging
import time
from collections.abc import Callable

from common.line import sanitize_text
from common.outcome import Outcome, Timeout, TransportFailure
from common.protocol import DEFAULT_POLL_INTERVAL_S, TRACE, Transport
from engine.classify import classify

logger = logging.getLogger(__name__)

Accept = Callable[[Outcome], bool]


def accept_any(outcome: Outcome) -> bool:
    """Treat every non-empty line as terminal."""
    return True


def poll_until(
    transport: Transport,
    accept: Accept = accept_any,
    timeout_s: float | None = None,
    tick_s: float = DEFAULT_POLL_INTERVAL_S,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Outcome:
    """Poll the transport until a terminal outcome or the deadline.

    Args:
        transport: Transport to read from (one read_line() per tick).
        accept: Decides whether a classified line ends the loop. Lines it
            rejects are logged and ignored.
        timeout_s: Deadline in seconds from loop entry; None waits forever.
        tick_s: Interval between polls.
        clock: Monotonic clock, injectable for tests.
        sleep: Sleep function, injectable for tests.

    Returns:
        The accepted Outcome, Timeout when the deadline elapsed, or
        TransportFailure when the transport raised.
    """
    start = clock()

    while True:
        elapsed = clock() - start
        if timeout_s is not None and elapsed >= timeout_s:
            logger.debug(f"Timeout ({timeout_s}s) waiting for module event")
            return Timeout(elapsed_s=elapsed)

        try:
            raw = transport.read_line()
        except OSError as e:
            logger.warning(f"Read failed while waiting for module event: {e}")
            return TransportFailure(e)

        if raw:
            line = sanitize_text(raw)
            outcome = classify(line)
            if accept(outcome):
                logger.debug(f"Received terminal line {line!r} after {clock() - start:.2f}s")
                return outcome
            logger.debug(f"Ignoring line {line!r} while waiting for module event")
        else:
            logger.log(TRACE, "Nothing buffered, waiting for next tick")

        wait = tick_s
        if timeout_s is not None:
            wait = min(tick_s, max(0.0, timeout_s - (clock() - start)))
        if wait > 0:
            sleep(wait)
