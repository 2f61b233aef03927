"""linegrep scanner package.

The engine integration layer: compile a pattern into an EngineHandle,
provision its Workspace, and scan lines through the match reporter.
"""

from linegrep.scanner.handle import EngineHandle, compile_pattern
from linegrep.scanner.reporter import ScanContext, report_match
from linegrep.scanner.scan_loop import iter_matching_lines, read_lines, scan_line
from linegrep.scanner.workspace import Workspace, provision_workspace

__all__ = [
    "EngineHandle",
    "ScanContext",
    "Workspace",
    "compile_pattern",
    "iter_matching_lines",
    "provision_workspace",
    "read_lines",
    "report_match",
    "scan_line",
]
