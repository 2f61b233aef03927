"""Match reporter — the callback handed to the engine for every scan.

Matching is a boolean predicate here: the first match event settles the
outcome for the line, so the reporter records it and asks the engine to stop.
"""

from __future__ import annotations

from dataclasses import dataclass

#: Return value that tells the engine to stop scanning the current line.
HALT_SCAN: int = 1


@dataclass
class ScanContext:
    """Outcome slot for one scan call.

    Created fresh by scan_line() for each line and discarded when the call
    returns; the engine only sees it through ``report_match``.
    """

    matched: bool = False


def report_match(id_: int, start: int, end: int, flags: int, context: ScanContext) -> int:
    """Record the first match event and halt the scan."""
    context.matched = True
    return HALT_SCAN
