"""Workspace — engine scratch sized for one EngineHandle.

Provisioned once per handle and reused for every line of the run. Not safe
for concurrent use: a concurrent design needs one Workspace per worker, all
sharing the same read-only EngineHandle.
"""

from __future__ import annotations

from typing import Any

from linegrep.engine.protocol import Status
from linegrep.errors import AllocError
from linegrep.scanner.handle import EngineHandle
from linegrep.utils.logger import get_logger

logger = get_logger(__name__)


class Workspace:
    """Owns one engine scratch region, bound to the handle it came from."""

    def __init__(self, handle: EngineHandle, scratch: Any) -> None:
        self.handle = handle
        self._scratch = scratch
        self.in_use = False

    @property
    def released(self) -> bool:
        return self._scratch is None

    @property
    def scratch(self) -> Any:
        return self._scratch

    def release(self) -> None:
        """Free the scratch region. Idempotent."""
        if self._scratch is None:
            return
        scratch, self._scratch = self._scratch, None
        self.handle.engine.free_workspace(scratch)
        self.handle._detach(self)
        logger.debug("workspace released", engine=self.handle.engine.name)

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"<Workspace engine={self.handle.engine.name} {state}>"


def provision_workspace(handle: EngineHandle) -> Workspace:
    """Allocate the scratch region ``handle`` needs for scanning.

    Raises:
        AllocError: Handle already released (code INVALID), or the engine
                    failed to allocate (code = engine status).
    """
    if handle.released:
        raise AllocError(Status.INVALID, "cannot provision scratch for a released handle")

    scratch, status = handle.engine.alloc_workspace(handle.database)
    if status != Status.SUCCESS:
        if scratch is not None:
            handle.engine.free_workspace(scratch)
        raise AllocError(int(status))

    workspace = Workspace(handle, scratch)
    handle._attach(workspace)
    logger.debug("workspace provisioned", engine=handle.engine.name)
    return workspace
