"""Scan loop — one engine call per input line.

Provides:
  - ``scan_line()``: scan one complete line, return matched / not matched.
  - ``read_lines()``: split a binary stream into lines, terminators stripped.
  - ``iter_matching_lines()``: drive scan_line() over lines, yield matches in order.

INVARIANTS:
  - Every scan call gets a fresh ScanContext; nothing leaks between lines.
  - The outcome is read only after the engine call has returned.
  - The line is passed as a read-only view over immutable bytes, so it cannot
    change while the engine holds it.
  - A failed scan raises ScanError. The run aborts; the line is not skipped.
"""

from __future__ import annotations

from typing import BinaryIO, Iterable, Iterator

from linegrep.constants import SCAN_FLAGS
from linegrep.engine.protocol import Status
from linegrep.errors import ScanError, StreamIOError
from linegrep.scanner.handle import EngineHandle
from linegrep.scanner.reporter import ScanContext, report_match
from linegrep.scanner.workspace import Workspace
from linegrep.utils.logger import get_logger

logger = get_logger(__name__)

# Statuses after which the ScanContext holds a valid outcome.
_COMPLETED = (Status.SUCCESS, Status.SCAN_TERMINATED)


def scan_line(handle: EngineHandle, workspace: Workspace, line: bytes) -> bool:
    """Scan ``line`` as one complete block against ``handle``.

    Raises:
        ScanError: Handle/workspace released or mismatched (code INVALID),
                   workspace already in use (code SCRATCH_IN_USE), or the
                   engine returned any other failure status.
    """
    if handle.released or workspace.released:
        raise ScanError(Status.INVALID, "scan with a released handle or workspace")
    if workspace.handle is not handle:
        raise ScanError(Status.INVALID, "workspace was provisioned for a different handle")
    if workspace.in_use:
        raise ScanError(Status.SCRATCH_IN_USE)

    data = bytes(line)
    context = ScanContext()

    workspace.in_use = True
    try:
        with memoryview(data) as view:
            status = handle.engine.scan(
                handle.database,
                view,
                len(data),
                SCAN_FLAGS,
                workspace.scratch,
                report_match,
                context,
            )
    finally:
        workspace.in_use = False

    if status not in _COMPLETED:
        logger.error("scan failed", status=int(status), line_len=len(data))
        raise ScanError(int(status))

    return context.matched


def read_lines(stream: BinaryIO) -> Iterator[bytes]:
    """Yield lines from ``stream`` without their ``\\n`` / ``\\r\\n`` terminator.

    A final line with no terminator is still yielded.

    Raises:
        StreamIOError: The underlying read failed.
    """
    while True:
        try:
            raw = stream.readline()
        except OSError as exc:
            raise StreamIOError(str(exc), direction="read") from exc
        if not raw:
            return
        if raw.endswith(b"\n"):
            raw = raw[:-1]
            if raw.endswith(b"\r"):
                raw = raw[:-1]
        yield raw


def iter_matching_lines(
    handle: EngineHandle,
    workspace: Workspace,
    lines: Iterable[bytes],
) -> Iterator[bytes]:
    """Yield each line of ``lines`` that matches, in input order."""
    for line in lines:
        if scan_line(handle, workspace, line):
            yield line
