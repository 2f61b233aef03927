"""linegrep engine package.

The regex engine is an external collaborator reached through the
MatchingEngine protocol. Re-exports the protocol types:

    from linegrep.engine import MatchingEngine, Status

Backends are created with ``linegrep.engine.factory.create_engine()``.
"""

from linegrep.engine.protocol import (
    CompileErrorInfo,
    MatchEventHandler,
    MatchingEngine,
    Status,
    status_name,
)

__all__ = [
    "CompileErrorInfo",
    "MatchEventHandler",
    "MatchingEngine",
    "Status",
    "status_name",
]
