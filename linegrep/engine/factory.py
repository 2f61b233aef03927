"""Engine factory — backend selection and initialization.

Backend selection:
  - "re2"       → Re2Engine (default; google-re2 is a core dependency)
  - "hyperscan" → HyperscanEngine (needs the `hyperscan` extra)

Backends are imported lazily so a missing optional library only matters when
that backend is actually requested.
"""

from __future__ import annotations

from linegrep.constants import DEFAULT_ENGINE
from linegrep.engine.protocol import MatchingEngine
from linegrep.errors import EngineUnavailableError
from linegrep.utils.logger import get_logger

logger = get_logger(__name__)


def create_engine(name: str = DEFAULT_ENGINE) -> MatchingEngine:
    """Create the MatchingEngine named ``name``.

    Raises:
        EngineUnavailableError: Unknown backend name, or the backend's
                                library is not installed.
    """
    if name == "re2":
        engine = _create_re2_engine()
    elif name == "hyperscan":
        engine = _create_hyperscan_engine()
    else:
        raise EngineUnavailableError(f"unknown engine backend: '{name}'")

    logger.debug("engine_selected", backend=engine.name)
    return engine


def _create_re2_engine() -> MatchingEngine:
    from linegrep.engine.re2_engine import Re2Engine

    return Re2Engine()


def _create_hyperscan_engine() -> MatchingEngine:
    try:
        from linegrep.engine.hyperscan_engine import HyperscanEngine
    except ImportError as exc:
        raise EngineUnavailableError(
            f"hyperscan backend unavailable ({exc}); "
            "install it with: pip install 'linegrep[hyperscan]'"
        ) from exc

    return HyperscanEngine()
