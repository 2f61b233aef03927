"""Config loading for linegrep.

Reads `.linegrep/config.yaml` (or `~/.linegrep/config.yaml`).
Raises SystemExit on parse errors or missing `version` field.
If no config file is found, returns default values (safe to run without config).

Config search order:
  1. `config_path` argument (if provided, for testing or explicit override)
  2. LINEGREP_CONFIG environment variable (if set)
  3. `.linegrep/config.yaml` (working directory)
  4. `~/.linegrep/config.yaml` (home directory)

Environment variable overrides:
  LINEGREP_ENGINE    — overrides engine.backend
  LINEGREP_LOG_LEVEL — overrides logging.level

Example file:

    version: 1
    engine:
      backend: hyperscan
    logging:
      level: DEBUG
      json: true
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import NoReturn, Optional

import yaml

from linegrep.constants import DEFAULT_ENGINE, VALID_ENGINES
from linegrep.utils.logger import DEFAULT_LOG_LEVEL, get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

# ─── Validation sets ─────────────────────────────────────────────────────────

VALID_LOG_LEVELS: frozenset[str] = frozenset(
    {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
)

DEFAULT_CONFIG_PATHS = [
    ".linegrep/config.yaml",
    os.path.expanduser("~/.linegrep/config.yaml"),
]


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class EngineConfig:
    """Matching engine selection.

    backend: "re2" (google-re2, always installed) or
             "hyperscan" (requires the `hyperscan` extra).
    """

    backend: str = DEFAULT_ENGINE


@dataclass
class LoggingConfig:
    """Diagnostic logging (always written to stderr)."""

    level: str = DEFAULT_LOG_LEVEL
    json: bool = False


@dataclass
class Config:
    """Root configuration object populated from .linegrep/config.yaml.

    All fields have safe defaults; linegrep runs without any config file.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    engine: EngineConfig = field(default_factory=EngineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    path: Optional[str] = None  # Path to the loaded config file, None for defaults

    @classmethod
    def defaults(cls) -> "Config":
        """Return a fully-default Config (no file required)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.

        Raises:
            SystemExit(1): On an invalid engine.backend or logging.level value.
        """
        # ── Engine ────────────────────────────────────────────────────────────
        engine_raw = raw.get("engine") or {}
        backend = engine_raw.get("backend", DEFAULT_ENGINE)
        _check_backend(backend, source="engine.backend")

        # ── Logging ───────────────────────────────────────────────────────────
        logging_raw = raw.get("logging") or {}
        level = str(logging_raw.get("level", DEFAULT_LOG_LEVEL)).upper()
        _check_log_level(level, source="logging.level")

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            engine=EngineConfig(backend=backend),
            logging=LoggingConfig(
                level=level,
                json=bool(logging_raw.get("json", False)),
            ),
            path=path,
        )


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate linegrep configuration.

    The first existing file on the search path wins; with none, the defaults
    are used. Env var overrides are applied last either way.

    Raises:
        SystemExit(1): On an unreadable or malformed file, a missing or
                       unsupported ``version``, or an invalid engine/log level.
    """
    found_path = _find_config_file(config_path)
    if found_path is None:
        config = Config.defaults()
    else:
        config = Config.from_dict(_read_config_file(found_path), path=found_path)
    _apply_env_overrides(config)

    logger.debug("Config loaded", path=found_path, engine=config.engine.backend)
    return config


def _find_config_file(config_path: Optional[str]) -> Optional[str]:
    candidates = [config_path, os.environ.get("LINEGREP_CONFIG"), *DEFAULT_CONFIG_PATHS]
    for candidate in filter(None, candidates):
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            return expanded
    return None


def _read_config_file(path: str) -> dict:
    try:
        with open(path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        _config_error(f"Failed to parse {path}: {exc}")
    except OSError as exc:
        _config_error(f"Could not read {path}: {exc}")

    if raw is not None and not isinstance(raw, dict):
        _config_error(f"{path} is not a valid YAML mapping.")
    version = (raw or {}).get("version")
    if version is None:
        _config_error(
            f"{path} is missing the required 'version' field. "
            "Add 'version: 1' to the top of the file."
        )
    if version not in SUPPORTED_VERSIONS:
        _config_error(
            f"Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )
    return raw


def _config_error(message: str) -> NoReturn:
    print(f"CONFIG ERROR: {message}", file=sys.stderr)
    raise SystemExit(1)


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to a Config object in-place.

    Raises:
        SystemExit(1): If an override names an unknown engine or log level.
    """
    env_engine = os.environ.get("LINEGREP_ENGINE")
    if env_engine:
        _check_backend(env_engine, source="LINEGREP_ENGINE")
        config.engine.backend = env_engine

    env_level = os.environ.get("LINEGREP_LOG_LEVEL")
    if env_level:
        level = env_level.upper()
        _check_log_level(level, source="LINEGREP_LOG_LEVEL")
        config.logging.level = level


def _check_backend(backend: str, source: str) -> None:
    if backend not in VALID_ENGINES:
        _config_error(
            f"Invalid {source}: '{backend}'. "
            f"Supported values: {sorted(VALID_ENGINES)}."
        )


def _check_log_level(level: str, source: str) -> None:
    if level not in VALID_LOG_LEVELS:
        _config_error(
            f"Invalid {source}: '{level}'. "
            f"Supported values: {sorted(VALID_LOG_LEVELS)}."
        )
