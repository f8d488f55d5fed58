"""Reporting abstractions for the RN2483 driver.

Contains:
- Report ABC: Base class for all reports
- ParameterReport: Report of values read from or written to the module
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class Report(ABC):
    """Abstract base class for command-line reports."""

    @abstractmethod
    def print(self) -> None:
        """Print the report to stdout."""
        pass

    @abstractmethod
    def success(self) -> bool:
        """Return True if the report indicates success."""
        pass


@dataclass
class ParameterReport(Report):
    """Report of one or more parameter values.

    A value of None means it could not be read; errors holds the reason.
    """

    values: dict[str, str | None] = field(default_factory=dict)
    errors: dict[str, Exception] = field(default_factory=dict)

    def print(self) -> None:
        """Print one "name: value" line per parameter."""
        width = max((len(name) for name in self.values), default=0)
        for name, value in self.values.items():
            if value is None:
                print(f"{name:<{width}}: FAILED ({self.errors.get(name)})")
            else:
                print(f"{name:<{width}}: {value}")

    def success(self) -> bool:
        """Return True if every parameter was read."""
        return not self.errors
