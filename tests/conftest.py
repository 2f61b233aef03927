"""Root test configuration for linegrep.

Clears every LINEGREP_* environment variable so a developer's shell settings
cannot leak into config loading, and runs each test from an empty working
directory so no `.linegrep/config.yaml` is picked up by accident.

Shared engine fixtures:
  - ``re2_engine``  — the real google-re2 backend
  - ``fake_engine`` — tests/fakes.FakeEngine for fault injection
"""

import pytest

from linegrep.engine.re2_engine import Re2Engine
from tests.fakes import FakeEngine


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """No config file and no env overrides unless a test sets them."""
    for name in ("LINEGREP_CONFIG", "LINEGREP_ENGINE", "LINEGREP_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def re2_engine() -> Re2Engine:
    return Re2Engine()


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()
