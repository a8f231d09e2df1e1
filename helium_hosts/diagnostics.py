"""
Warnings and progress events raised while building a host report.

Components never print. They push Diagnostic events into a Diagnostics
collector, and the script decides how much of it reaches the console.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, List, Optional

# Console detail levels (-v / -vv)
INFO_LOW = 0
INFO_MEDIUM = 1
INFO_VERBOSE = 2

WARNING = "warning"
ERROR = "error"
INFO = "info"


@dataclass
class Diagnostic:
    kind: str
    hotspot: str
    detail: str
    level: str = WARNING
    info_level: int = INFO_LOW

    def __str__(self) -> str:
        if self.hotspot:
            return f"{self.hotspot}: {self.detail}"
        return self.detail


class Diagnostics:
    """Ordered list of events, optionally echoed to a printer as they arrive."""

    def __init__(self, printer: Optional[Callable[[Diagnostic], None]] = None):
        self.events: List[Diagnostic] = []
        self._printer = printer

    def _add(self, event: Diagnostic) -> Diagnostic:
        self.events.append(event)
        if self._printer is not None:
            self._printer(event)
        return event

    def warn(self, kind: str, hotspot: str, detail: str) -> Diagnostic:
        return self._add(Diagnostic(kind, hotspot, detail, WARNING))

    def error(self, kind: str, hotspot: str, detail: str) -> Diagnostic:
        return self._add(Diagnostic(kind, hotspot, detail, ERROR))

    def info(self, kind: str, hotspot: str, detail: str, info_level: int = INFO_LOW) -> Diagnostic:
        return self._add(Diagnostic(kind, hotspot, detail, INFO, info_level))

    def of_kind(self, kind: str) -> List[Diagnostic]:
        return [e for e in self.events if e.kind == kind]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [e for e in self.events if e.level == WARNING]

    @property
    def errors(self) -> List[Diagnostic]:
        return [e for e in self.events if e.level == ERROR]


def console_printer(verbosity: int = INFO_LOW) -> Callable[[Diagnostic], None]:
    """Print warnings and errors always, info events up to `verbosity`."""

    def _print(event: Diagnostic) -> None:
        if event.level == ERROR:
            print(f"  ✗ ERROR: {event}", file=sys.stderr)
        elif event.level == WARNING:
            print(f"  ⚠ WARNING: {event}")
        elif event.info_level <= verbosity:
            print(f"  ℹ {event}")

    return _print
