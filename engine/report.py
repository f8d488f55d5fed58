"""Transaction reporting for the RN2483 driver.

Contains:
- TransactionReport: Report after a long-running transaction completes
"""

from dataclasses import dataclass

from common.report import Report
from engine.result import ReceiveResult, TransactionResult, UplinkResult


@dataclass
class TransactionReport(Report):
    """Report after a join, uplink, radio transmit or receive completes."""

    name: str
    result: TransactionResult

    def print(self) -> None:
        """Print the transaction report."""
        r = self.result
        state = r.state.name

        if not r.success:
            print(f"{self.name}: FAILED {state} ({r.error})")
            return

        print(f"{self.name}: SUCCESS {state} ({r.elapsed_s:.1f}s)")

        if isinstance(r, UplinkResult) and r.downlink is not None:
            print(
                f"Downlink: port={r.downlink.port} "
                f"payload={r.downlink.payload.hex().upper()} ({len(r.downlink.payload)} bytes)"
            )
        if isinstance(r, ReceiveResult) and r.payload is not None:
            print(f"Received: {r.payload.hex().upper()} ({len(r.payload)} bytes)")

    def success(self) -> bool:
        """Return True if the transaction succeeded."""
        return self.result.success
