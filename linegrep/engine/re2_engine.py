"""Re2Engine — google-re2 backend for the MatchingEngine contract.

google-re2 guarantees linear-time matching (no catastrophic backtracking),
which makes it safe to run arbitrary user patterns over unbounded input.

RE2 keeps its match state internally, so the "scratch" handed out by
``alloc_workspace()`` is a small record that pins the database it was
allocated for and tracks whether a scan is currently using it. That keeps the
same misuse guarantees as a real scratch region: scratch from another
database is rejected with ``Status.INVALID`` and re-entrant use with
``Status.SCRATCH_IN_USE``.

IMPORT RULES:
  - ``import re2`` ONLY. ``import re`` is PROHIBITED in this file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import re2  # google-re2, NOT stdlib re

from linegrep.constants import MODE_BLOCK, PATTERN_ID
from linegrep.engine.protocol import CompileErrorInfo, MatchEventHandler, Status


@dataclass
class Re2Database:
    """Compiled pattern. ``regexp`` is None once freed."""

    regexp: Any
    pattern: bytes


@dataclass
class Re2Scratch:
    """Per-database scan state. ``database`` is None once freed."""

    database: Optional[Re2Database]
    in_use: bool = False


class Re2Engine:
    """MatchingEngine backed by google-re2."""

    name = "re2"

    def compile(
        self, pattern: bytes, flags: int, mode: int
    ) -> tuple[Optional[Re2Database], int, Optional[CompileErrorInfo]]:
        if mode != MODE_BLOCK:
            return None, Status.COMPILER_ERROR, CompileErrorInfo(
                message=f"Unsupported mode: {mode}", expression=PATTERN_ID
            )
        try:
            pattern.decode("utf-8")
        except UnicodeDecodeError as exc:
            return None, Status.COMPILER_ERROR, CompileErrorInfo(
                message=f"Pattern is not valid UTF-8: {exc}", expression=PATTERN_ID
            )

        try:
            regexp = re2.compile(pattern)
        except re2.error as exc:
            message = str(exc) or None
            return None, Status.COMPILER_ERROR, CompileErrorInfo(
                message=message, expression=PATTERN_ID
            )

        return Re2Database(regexp=regexp, pattern=pattern), Status.SUCCESS, None

    def alloc_workspace(self, database: Any) -> tuple[Optional[Re2Scratch], int]:
        if not isinstance(database, Re2Database) or database.regexp is None:
            return None, Status.INVALID
        return Re2Scratch(database=database), Status.SUCCESS

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
        if not isinstance(database, Re2Database) or database.regexp is None:
            return Status.INVALID
        if not isinstance(scratch, Re2Scratch) or scratch.database is not database:
            return Status.INVALID
        if scratch.in_use:
            return Status.SCRATCH_IN_USE
        if length < 0 or length > len(data):
            return Status.INVALID

        # Bytes in, bytes out: offsets are byte offsets and invalid UTF-8 in the
        # line is matched as-is, never replaced.
        subject = bytes(data[:length])

        scratch.in_use = True
        try:
            for m in database.regexp.finditer(subject):
                if on_match(PATTERN_ID, m.start(), m.end(), 0, context):
                    return Status.SCAN_TERMINATED
        finally:
            scratch.in_use = False
        return Status.SUCCESS

    def free_compile_error(self, info: Optional[CompileErrorInfo]) -> None:
        if info is not None:
            info.freed = True

    def free_workspace(self, scratch: Any) -> None:
        if isinstance(scratch, Re2Scratch):
            scratch.database = None

    def free_database(self, database: Any) -> None:
        if isinstance(database, Re2Database):
            database.regexp = None
