"""Shared constants for linegrep.

Exit statuses, engine mode/flag values and the usage text live here.
No magic numbers in other modules; import from here.
"""

# ─── Exit statuses ───────────────────────────────────────────────────────────

EXIT_OK: int = 0

# Any fatal error: invalid pattern, compile/alloc/scan failure, stream I/O.
EXIT_FAILURE: int = 1

# Missing PATTERN argument. Reported before any compilation is attempted.
EXIT_USAGE: int = 1

# ─── Engine call values ──────────────────────────────────────────────────────

# Single-buffer scanning: every line is a complete, independent unit.
# Streaming and vectored modes are never requested.
MODE_BLOCK: int = 1

# No per-pattern flags (caseless, dotall, ...) are applied to the pattern.
PATTERN_FLAGS: int = 0

# Flags argument passed to every scan call. Reserved by the engine contract.
SCAN_FLAGS: int = 0

# Identifier reported for the single compiled expression.
PATTERN_ID: int = 0

# ─── Compile diagnostics ─────────────────────────────────────────────────────

# Used when the engine rejects a pattern but supplies no message of its own.
UNKNOWN_COMPILE_ERROR: str = "Unknown compile error"

# ─── Engine backends ─────────────────────────────────────────────────────────

DEFAULT_ENGINE: str = "re2"
VALID_ENGINES: frozenset[str] = frozenset({"re2", "hyperscan"})

# ─── Command surface ─────────────────────────────────────────────────────────

PROG: str = "linegrep"

USAGE: str = (
    "Usage:\n"
    "  cat file.txt | linegrep \"<regex>\"\n"
    "Example:\n"
    "  cat emails.txt | linegrep \"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\\.[a-zA-Z]{2,}$\""
)
