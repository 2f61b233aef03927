"""Per-line scan benchmark for linegrep.

Measures p50/p99 latency of scan_line() with one compiled handle and one
reused workspace, across short, long, early-match and no-match lines.

Usage (from project root, with .venv activated):
    python benchmarks/bench_scan.py            # re2 backend
    python benchmarks/bench_scan.py hyperscan  # needs the hyperscan extra
"""

from __future__ import annotations

import sys
import time
from typing import Any

from linegrep.engine.factory import create_engine
from linegrep.scanner.handle import compile_pattern
from linegrep.scanner.scan_loop import scan_line
from linegrep.scanner.workspace import provision_workspace

# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"

SHORT_MISS = b"Hello, how do I install Python on Ubuntu?"
LONG_MISS = b"The quick brown fox jumped over the lazy dog. " * 180  # ~8 KB
EARLY_HIT = b"ops@example.com " + b"filler text " * 600
MANY_HITS = b"a@b.com " * 1000

# p99 ceiling per line, in milliseconds.
P99_BUDGET_MS = 1.0


def measure_p99(fn: Any, *args: Any, n: int = 1_000) -> tuple[float, float, float]:
    """Run fn(*args) n times and return (p50, p99, max) in milliseconds."""
    latencies: list[float] = []
    for _ in range(n):
        start = time.perf_counter()
        fn(*args)
        elapsed = (time.perf_counter() - start) * 1_000
        latencies.append(elapsed)
    latencies.sort()
    p50 = latencies[int(0.50 * n)]
    p99 = latencies[int(0.99 * n)]
    return p50, p99, latencies[-1]


def run_benchmarks(backend: str = "re2") -> bool:
    """Run all benchmarks. Returns True if all pass."""
    WARMUP = 100
    N = 1_000

    print("=" * 70)
    print(f"linegrep scan_line() benchmark — engine={backend}")
    print(f"Warmup: {WARMUP} calls | Measurement: {N} calls each")
    print("=" * 70)

    scenarios = [
        ("Short line, no match", SHORT_MISS),
        ("8 KB line, no match", LONG_MISS),
        ("Match at start of long line", EARLY_HIT),
        ("1000 matches in one line", MANY_HITS),
    ]

    all_pass = True
    with compile_pattern(EMAIL_PATTERN, create_engine(backend)) as handle:
        with provision_workspace(handle) as workspace:
            for name, line in scenarios:
                for _ in range(WARMUP):
                    scan_line(handle, workspace, line)

                p50, p99, worst = measure_p99(scan_line, handle, workspace, line, n=N)
                passed = p99 <= P99_BUDGET_MS
                status = "✓ PASS" if passed else "✗ FAIL"
                if not passed:
                    all_pass = False
                print(f"  [{status}] {name}")
                print(f"          p50={p50:.3f}ms  p99={p99:.3f}ms  worst={worst:.3f}ms")

    print("=" * 70)
    if all_pass:
        print(f"RESULT: ALL BENCHMARKS PASSED — p99 < {P99_BUDGET_MS}ms ✓")
    else:
        print(f"RESULT: SOME BENCHMARKS FAILED — p99 exceeded {P99_BUDGET_MS}ms ✗")
    print("=" * 70)

    return all_pass


if __name__ == "__main__":
    passed = run_benchmarks(sys.argv[1] if len(sys.argv) > 1 else "re2")
    sys.exit(0 if passed else 1)
