"""Console entry point for linegrep.

Usage:
    cat file.txt | linegrep "<regex>"      # via pyproject.toml [project.scripts]
    python -m linegrep.run "<regex>"

Exactly one positional argument is read: the pattern. Anything after it is
ignored. With no argument the usage text goes to stderr and the process exits
non-zero before any compilation.

Exit status: 0 when input is exhausted (matches or not), 1 on any error.
"""

from __future__ import annotations

import sys
from typing import BinaryIO, Optional, Sequence

from linegrep.config import load_config
from linegrep.constants import EXIT_OK, EXIT_USAGE, PROG, USAGE
from linegrep.engine.factory import create_engine
from linegrep.errors import FilterError
from linegrep.lifecycle import FilterRun
from linegrep.utils.logger import clear_run_context, configure_logging, get_logger

logger = get_logger(__name__)


def main(
    argv: Optional[Sequence[str]] = None,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
    config_path: Optional[str] = None,
) -> int:
    """Run the filter and return its exit status.

    Args:
        argv:        Arguments without the program name (default: sys.argv[1:]).
        stdin:       Binary input stream (default: sys.stdin.buffer).
        stdout:      Binary output stream (default: sys.stdout.buffer).
        config_path: Explicit config file, tried before the default search paths.

    Raises:
        SystemExit(1): Propagated from load_config() on an invalid config file.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(USAGE, file=sys.stderr)
        return EXIT_USAGE
    pattern = args[0]

    config = load_config(config_path)
    configure_logging(config.logging.level, json_output=config.logging.json)

    in_stream = stdin if stdin is not None else sys.stdin.buffer
    out_stream = stdout if stdout is not None else sys.stdout.buffer

    try:
        engine = create_engine(config.engine.backend)
        FilterRun(pattern, engine).run(in_stream, out_stream)
    except FilterError as exc:
        logger.debug("fatal error", error_type=type(exc).__name__, exit_code=exc.exit_code)
        print(f"{PROG}: {exc}", file=sys.stderr)
        return exc.exit_code
    finally:
        clear_run_context()

    return EXIT_OK


def cli() -> None:
    """Entry point for the ``linegrep`` console script."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
