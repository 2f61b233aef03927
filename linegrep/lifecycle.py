"""FilterRun — compile → provision → scan → release for one pattern.

State machine:

    START → COMPILED → PROVISIONED → SCANNING → DRAINING → RELEASED → DONE
      │         │            │            │
      └─────────┴────────────┴────────────┴──→ FAILED

Startup steps (in order):
  1. compile_pattern()      — failure: FAILED, nothing to release
  2. provision_workspace()  — failure: FAILED, the handle is still released
  3. scan loop              — until end of input or the first error

Shutdown (every exit path out of PROVISIONED/SCANNING, errors included):
  workspace released → handle released. Both are registered on an ExitStack,
  so they unwind in reverse acquisition order exactly once.

Any error propagates to the caller after release. Lines already written stay
written: output is flushed line by line and never rolled back.
"""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Iterator, Optional, Union

from linegrep.engine.protocol import MatchingEngine
from linegrep.errors import FilterError, StreamIOError
from linegrep.scanner.handle import EngineHandle, compile_pattern
from linegrep.scanner.scan_loop import iter_matching_lines, read_lines
from linegrep.scanner.workspace import Workspace, provision_workspace
from linegrep.utils.logger import PerformanceLogger, bind_run_context, get_logger

logger = get_logger(__name__)


class RunState(str, Enum):
    START = "START"
    COMPILED = "COMPILED"
    PROVISIONED = "PROVISIONED"
    SCANNING = "SCANNING"
    DRAINING = "DRAINING"
    RELEASED = "RELEASED"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass(frozen=True)
class RunSummary:
    """Counters for a completed run."""

    lines_read: int
    lines_matched: int


class FilterRun:
    """Runs one pattern over one input stream.

    Holds no process-wide state: the engine, handle and workspace are owned by
    this object for the duration of ``run()`` and released before it returns.

    ``history`` records every state the run passed through, in order.
    """

    def __init__(self, pattern: Union[str, bytes], engine: MatchingEngine) -> None:
        self.pattern = pattern
        self.engine = engine
        self.state = RunState.START
        self.history: list[RunState] = [RunState.START]
        self.handle: Optional[EngineHandle] = None
        self.workspace: Optional[Workspace] = None
        self.lines_read = 0
        self.lines_matched = 0

    def _enter(self, state: RunState) -> None:
        self.state = state
        self.history.append(state)
        bind_run_context(run_state=state.value)

    def run(self, stdin: BinaryIO, stdout: BinaryIO) -> RunSummary:
        """Filter ``stdin`` into ``stdout``.

        Raises:
            FilterError: Any fatal error, after every held resource is released.
        """
        bind_run_context(engine=self.engine.name)
        try:
            with ExitStack() as stack:
                with PerformanceLogger("pattern compile", logger):
                    handle = compile_pattern(self.pattern, self.engine)
                self.handle = handle
                stack.callback(self._release_handle)
                self._enter(RunState.COMPILED)

                with PerformanceLogger("workspace provision", logger):
                    workspace = provision_workspace(handle)
                self.workspace = workspace
                stack.callback(self._release_workspace)
                self._enter(RunState.PROVISIONED)

                self._enter(RunState.SCANNING)
                try:
                    self._scan(handle, workspace, stdin, stdout)
                finally:
                    self._enter(RunState.DRAINING)
        except FilterError as exc:
            self._enter(RunState.FAILED)
            logger.debug("run failed", error=str(exc), lines_read=self.lines_read)
            raise

        self._enter(RunState.DONE)
        logger.info(
            "run complete",
            lines_read=self.lines_read,
            lines_matched=self.lines_matched,
        )
        return RunSummary(lines_read=self.lines_read, lines_matched=self.lines_matched)

    def _scan(
        self,
        handle: EngineHandle,
        workspace: Workspace,
        stdin: BinaryIO,
        stdout: BinaryIO,
    ) -> None:
        lines = self._count_lines(read_lines(stdin))
        for line in iter_matching_lines(handle, workspace, lines):
            self.lines_matched += 1
            _write_line(stdout, line)

    def _count_lines(self, lines: Iterator[bytes]) -> Iterator[bytes]:
        for line in lines:
            self.lines_read += 1
            yield line

    # ── Release callbacks (ExitStack unwinds workspace before handle) ────────

    def _release_workspace(self) -> None:
        if self.workspace is not None:
            self.workspace.release()

    def _release_handle(self) -> None:
        if self.handle is not None:
            self.handle.release()
        # Release is the last step whenever the pattern compiled.
        if self.state == RunState.DRAINING:
            self._enter(RunState.RELEASED)


def _write_line(stdout: BinaryIO, line: bytes) -> None:
    try:
        stdout.write(line + b"\n")
        stdout.flush()
    except OSError as exc:
        raise StreamIOError(str(exc), direction="write") from exc
