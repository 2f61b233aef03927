"""linegrep — line-oriented regex filter over a compiled matching engine.

Reads lines from stdin, scans each one against a single pre-compiled pattern,
and writes the matching lines to stdout in input order.

Layout:
    engine/     — MatchingEngine protocol + google-re2 / Hyperscan backends
    scanner/    — EngineHandle, Workspace, match reporter, scan loop
    lifecycle.py — FilterRun: compile → provision → scan → release
    run.py      — console entry point
"""

__version__ = "0.3.0"
