"""Error taxonomy for linegrep.

Every failure aborts the run; none is recovered locally. ``run.main()`` maps
any ``FilterError`` to a one-line message on stderr and a non-zero exit.

    FilterError
     ├── InvalidPatternError    pattern cannot cross the engine boundary (NUL byte)
     ├── CompileError           engine rejected the pattern
     ├── AllocError             scratch provisioning failed
     ├── ScanError              a scan call returned a failure status
     ├── StreamIOError          reading stdin / writing stdout failed
     └── EngineUnavailableError unknown backend or its library is not installed
"""

from __future__ import annotations

from typing import Optional

from linegrep.constants import EXIT_FAILURE
from linegrep.engine.protocol import status_name


class FilterError(Exception):
    """Base class for every fatal linegrep error."""

    #: Short prefix naming the step that failed ("compile pattern", ...).
    context: str = "linegrep"
    exit_code: int = EXIT_FAILURE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.context}: {self.message}"


class InvalidPatternError(FilterError):
    """Raised before any engine call when the pattern cannot be passed to it.

    That is a NUL byte, or a str holding surrogates that have no byte form.
    """

    context = "compile pattern"

    def __init__(self, message: str = "pattern contains interior NUL") -> None:
        super().__init__(message)


class CompileError(FilterError):
    """Raised when the engine rejects the pattern.

    ``message`` carries the engine's own diagnostic text.
    """

    context = "compile pattern"

    def __init__(self, message: str) -> None:
        super().__init__(f"compile error: {message}")
        self.diagnostic = message


class AllocError(FilterError):
    """Raised when scratch provisioning fails. ``code`` is the raw engine status."""

    context = "alloc scratch"

    def __init__(self, code: int, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"failed to allocate scratch (rc={code}, {status_name(code)})"
        )
        self.code = code


class ScanError(FilterError):
    """Raised when a scan call fails. ``code`` is the raw engine status."""

    context = "scan line"

    def __init__(self, code: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"scan failed (rc={code}, {status_name(code)})")
        self.code = code


class StreamIOError(FilterError):
    """Raised when reading input or writing output fails."""

    def __init__(self, message: str, direction: str = "read") -> None:
        super().__init__(message)
        self.direction = direction
        self.context = "read input" if direction == "read" else "write output"


class EngineUnavailableError(FilterError):
    """Raised when the configured engine backend cannot be created."""

    context = "select engine"
