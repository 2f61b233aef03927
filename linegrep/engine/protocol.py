"""MatchingEngine Protocol + status codes.

This is the narrow call contract between linegrep and the regex engine that
actually builds and runs the automaton. The engine owns every object it hands
out (compiled database, scratch, compile error record); linegrep only holds
them and gives them back through the matching ``free_*`` call.

Status convention: ``Status.SUCCESS`` (0) is the only success value. Every
other value is a failure code, except ``SCAN_TERMINATED`` which a scan returns
when the match callback asked it to stop.

Layout:
    protocol.py         — MatchingEngine Protocol, Status, CompileErrorInfo
    re2_engine.py       — Re2Engine (google-re2, default)
    hyperscan_engine.py — HyperscanEngine (python-hyperscan, optional extra)
    factory.py          — create_engine() — backend selection by name
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Optional, Protocol, runtime_checkable

#: Match callback: (pattern_id, start, end, flags, context) -> int.
#: A non-zero return halts the scan of the current buffer.
MatchEventHandler = Callable[[int, int, int, int, Any], Optional[int]]


class Status(IntEnum):
    """Engine return codes (values follow the Hyperscan C API)."""

    SUCCESS = 0
    INVALID = -1
    NOMEM = -2
    SCAN_TERMINATED = -3
    COMPILER_ERROR = -4
    DB_VERSION_ERROR = -5
    DB_PLATFORM_ERROR = -6
    DB_MODE_ERROR = -7
    BAD_ALIGN = -8
    BAD_ALLOC = -9
    SCRATCH_IN_USE = -10
    ARCH_ERROR = -11
    UNKNOWN_ERROR = -99


def status_name(code: int) -> str:
    """Readable name for a raw status code, for diagnostics."""
    try:
        return Status(code).name
    except ValueError:
        return f"UNKNOWN({code})"


@dataclass
class CompileErrorInfo:
    """Engine-owned diagnostic produced by a failed compile.

    Must be handed back via ``MatchingEngine.free_compile_error()`` once the
    message has been read.
    """

    message: Optional[str] = None
    expression: int = -1
    freed: bool = False


@runtime_checkable
class MatchingEngine(Protocol):
    """Pluggable regex engine interface.

    Implementations: Re2Engine (default), HyperscanEngine.
    Selection via create_engine() factory (engine/factory.py).

    All methods are synchronous. None of them raise for engine-level failures;
    failures are reported through the returned ``Status``.
    """

    name: str

    def compile(
        self, pattern: bytes, flags: int, mode: int
    ) -> tuple[Optional[Any], int, Optional[CompileErrorInfo]]:
        """Compile one NUL-free pattern into a database.

        Returns (database, SUCCESS, None) or (None, status, error_info).
        """
        ...

    def alloc_workspace(self, database: Any) -> tuple[Optional[Any], int]:
        """Allocate scratch space sized for ``database``."""
        ...

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
        """Scan ``data[:length]`` as one complete block.

        ``on_match`` is invoked synchronously, once per match event, only
        within the dynamic extent of this call.
        """
        ...

    def free_compile_error(self, info: Optional[CompileErrorInfo]) -> None:
        """Release a compile error record."""
        ...

    def free_workspace(self, scratch: Any) -> None:
        """Release scratch space."""
        ...

    def free_database(self, database: Any) -> None:
        """Release a compiled database."""
        ...
