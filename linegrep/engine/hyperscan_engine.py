"""HyperscanEngine — Intel Hyperscan backend (python-hyperscan).

Installed with the optional extra: ``pip install linegrep[hyperscan]``.

Hyperscan is the engine the contract was modelled on: a compiled database in
HS_MODE_BLOCK, a scratch region allocated per database, and a scan call that
delivers match events through a callback. The python binding raises on a
non-success return; this module turns those exceptions back into ``Status``
codes so the scanner layer sees one convention for every backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import hyperscan

from linegrep.constants import MODE_BLOCK, PATTERN_ID
from linegrep.engine.protocol import CompileErrorInfo, MatchEventHandler, Status
from linegrep.utils.logger import get_logger

logger = get_logger(__name__)

# python-hyperscan exception class name → engine status.
_STATUS_BY_ERROR: dict[str, Status] = {
    "InvalidError": Status.INVALID,
    "NoMemoryError": Status.NOMEM,
    "ScanTerminated": Status.SCAN_TERMINATED,
    "CompilerError": Status.COMPILER_ERROR,
    "DatabaseVersionError": Status.DB_VERSION_ERROR,
    "DatabasePlatformError": Status.DB_PLATFORM_ERROR,
    "DatabaseModeError": Status.DB_MODE_ERROR,
    "BadAlignError": Status.BAD_ALIGN,
    "BadAllocError": Status.BAD_ALLOC,
    "ScratchInUseError": Status.SCRATCH_IN_USE,
    "ArchError": Status.ARCH_ERROR,
}


def _status_for(exc: BaseException, default: Status = Status.UNKNOWN_ERROR) -> Status:
    return _STATUS_BY_ERROR.get(type(exc).__name__, default)


@dataclass
class HyperscanDatabase:
    """Compiled hyperscan.Database. ``db`` is None once freed."""

    db: Any


@dataclass
class HyperscanScratch:
    """hyperscan.Scratch pinned to the database it was allocated for."""

    scratch: Any
    database: Optional[HyperscanDatabase]
    in_use: bool = False


class HyperscanEngine:
    """MatchingEngine backed by python-hyperscan (block mode, single pattern)."""

    name = "hyperscan"

    def compile(
        self, pattern: bytes, flags: int, mode: int
    ) -> tuple[Optional[HyperscanDatabase], int, Optional[CompileErrorInfo]]:
        if mode != MODE_BLOCK:
            return None, Status.COMPILER_ERROR, CompileErrorInfo(
                message=f"Unsupported mode: {mode}", expression=PATTERN_ID
            )

        db = hyperscan.Database(mode=hyperscan.HS_MODE_BLOCK)
        try:
            db.compile(expressions=[pattern], ids=[PATTERN_ID], flags=[flags])
        except hyperscan.error as exc:
            message = str(exc) or None
            return None, _status_for(exc, Status.COMPILER_ERROR), CompileErrorInfo(
                message=message, expression=PATTERN_ID
            )

        return HyperscanDatabase(db=db), Status.SUCCESS, None

    def alloc_workspace(self, database: Any) -> tuple[Optional[HyperscanScratch], int]:
        if not isinstance(database, HyperscanDatabase) or database.db is None:
            return None, Status.INVALID
        try:
            scratch = hyperscan.Scratch(database.db)
        except hyperscan.error as exc:
            logger.debug("hyperscan scratch allocation failed", error=str(exc))
            return None, _status_for(exc, Status.NOMEM)
        return HyperscanScratch(scratch=scratch, database=database), Status.SUCCESS

    def scan(
        self,
        database: Any,
        data: memoryview,
        length: int,
        flags: int,
        scratch: Any,
        on_match: MatchEventHandler,
        context: Any,
    ) -> int:
        if not isinstance(database, HyperscanDatabase) or database.db is None:
            return Status.INVALID
        if not isinstance(scratch, HyperscanScratch) or scratch.database is not database:
            return Status.INVALID
        if scratch.in_use:
            return Status.SCRATCH_IN_USE
        if length < 0 or length > len(data):
            return Status.INVALID

        terminated = False

        def _on_match(id_: int, start: int, end: int, match_flags: int, ctx: Any) -> int:
            nonlocal terminated
            if on_match(id_, start, end, match_flags, ctx):
                terminated = True
                return 1
            return 0

        scratch.in_use = True
        try:
            database.db.scan(
                bytes(data[:length]),
                match_event_handler=_on_match,
                flags=flags,
                context=context,
                scratch=scratch.scratch,
            )
        except hyperscan.error as exc:
            status = _status_for(exc)
            if status != Status.SCAN_TERMINATED:
                logger.debug("hyperscan scan failed", error=str(exc), status=status.name)
            return status
        finally:
            scratch.in_use = False

        # Some binding versions return normally after the handler halts the scan.
        return Status.SCAN_TERMINATED if terminated else Status.SUCCESS

    def free_compile_error(self, info: Optional[CompileErrorInfo]) -> None:
        # The binding frees hs_compile_error_t itself; only the record is ours.
        if info is not None:
            info.freed = True

    def free_workspace(self, scratch: Any) -> None:
        if isinstance(scratch, HyperscanScratch):
            scratch.scratch = None
            scratch.database = None

    def free_database(self, database: Any) -> None:
        if isinstance(database, HyperscanDatabase):
            database.db = None
