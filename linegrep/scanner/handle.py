"""EngineHandle — the compiled form of exactly one pattern.

Provides:
  - ``EngineHandle``: owns the engine database; released exactly once.
  - ``compile_pattern()``: NUL check → engine compile → CompileError mapping.

INVARIANTS:
  - A pattern with an embedded NUL byte, or a str that has no byte form, is
    rejected with InvalidPatternError before the engine is called at all.
  - On a failed compile, the engine's error record is freed exactly once,
    after its message has been copied out.
  - ``release()`` frees any workspace still provisioned from this handle
    first, then the database. Further calls are no-ops.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Union

from linegrep.constants import MODE_BLOCK, PATTERN_FLAGS, UNKNOWN_COMPILE_ERROR
from linegrep.engine.protocol import MatchingEngine, Status
from linegrep.errors import CompileError, InvalidPatternError
from linegrep.utils.logger import get_logger

if TYPE_CHECKING:
    from linegrep.scanner.workspace import Workspace

logger = get_logger(__name__)


class EngineHandle:
    """Owns one compiled database. Immutable after creation.

    Safe to share between scan workers; each worker needs its own Workspace.
    Usable as a context manager: the database is released on exit.
    """

    def __init__(self, engine: MatchingEngine, database: Any, pattern: bytes) -> None:
        self.engine = engine
        self.pattern = pattern
        self._database = database
        self._workspaces: list["Workspace"] = []

    @property
    def released(self) -> bool:
        return self._database is None

    @property
    def database(self) -> Any:
        """The engine database. Only valid while the handle is live."""
        return self._database

    def _attach(self, workspace: "Workspace") -> None:
        self._workspaces.append(workspace)

    def _detach(self, workspace: "Workspace") -> None:
        if workspace in self._workspaces:
            self._workspaces.remove(workspace)

    def release(self) -> None:
        """Free the compiled database (workspaces first). Idempotent."""
        if self._database is None:
            return

        # A workspace must never outlive the handle it was sized for.
        for workspace in list(self._workspaces):
            logger.debug("releasing workspace before its handle")
            workspace.release()

        database, self._database = self._database, None
        self.engine.free_database(database)
        logger.debug("engine handle released", engine=self.engine.name)

    def __enter__(self) -> "EngineHandle":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"<EngineHandle engine={self.engine.name} pattern={self.pattern!r} {state}>"


def encode_pattern(pattern: Union[str, bytes]) -> bytes:
    """Return the pattern as NUL-free bytes, or raise InvalidPatternError.

    A ``str`` is encoded as UTF-8 with ``surrogateescape``, so undecodable
    bytes from ``sys.argv`` come back out unchanged and the engine decides
    whether it accepts them.
    """
    if isinstance(pattern, str):
        try:
            data = pattern.encode("utf-8", "surrogateescape")
        except UnicodeEncodeError as exc:
            raise InvalidPatternError(f"pattern is not encodable: {exc.reason}") from exc
    else:
        data = bytes(pattern)
    if b"\x00" in data:
        raise InvalidPatternError()
    return data


def compile_pattern(pattern: Union[str, bytes], engine: MatchingEngine) -> EngineHandle:
    """Compile ``pattern`` into a new EngineHandle (block mode, single pattern).

    Raises:
        InvalidPatternError: Pattern contains a NUL byte. The engine is not called.
        CompileError:        Engine rejected the pattern; carries its diagnostic.
    """
    data = encode_pattern(pattern)

    database, status, error_info = engine.compile(data, PATTERN_FLAGS, MODE_BLOCK)

    if status != Status.SUCCESS:
        message: Optional[str] = None
        if error_info is not None and error_info.message:
            message = error_info.message
        # The error record belongs to the engine and leaks unless handed back.
        engine.free_compile_error(error_info)
        if database is not None:
            engine.free_database(database)
        raise CompileError(message or UNKNOWN_COMPILE_ERROR)

    logger.debug("pattern compiled", engine=engine.name, pattern_len=len(data))
    return EngineHandle(engine, database, data)
