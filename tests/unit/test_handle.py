"""Unit tests for linegrep/scanner/handle.py.

Verifies:
  - compile_pattern() success path with the re2 backend
  - Compiling the same pattern twice gives independent, equivalent handles
  - NUL-byte and unencodable patterns are rejected before the engine is called
  - Undecodable command-line bytes reach the engine unchanged
  - Compile failures carry the engine diagnostic and free the error record once
  - EngineHandle.release() is idempotent and frees workspaces before the database
"""

from __future__ import annotations

import pytest

from linegrep.constants import UNKNOWN_COMPILE_ERROR
from linegrep.engine.protocol import Status
from linegrep.errors import CompileError, InvalidPatternError
from linegrep.scanner.handle import EngineHandle, compile_pattern, encode_pattern
from linegrep.scanner.scan_loop import scan_line
from linegrep.scanner.workspace import provision_workspace


# ─── Successful compile ───────────────────────────────────────────────────────


class TestCompilePattern:
    def test_returns_live_handle(self, re2_engine) -> None:
        handle = compile_pattern(r"^abc$", re2_engine)
        assert isinstance(handle, EngineHandle)
        assert handle.released is False
        assert handle.database is not None
        handle.release()

    def test_str_pattern_stored_as_utf8(self, re2_engine) -> None:
        handle = compile_pattern("café", re2_engine)
        assert handle.pattern == "café".encode("utf-8")
        handle.release()

    def test_bytes_pattern_accepted(self, fake_engine) -> None:
        handle = compile_pattern(b"needle", fake_engine)
        assert handle.pattern == b"needle"
        assert fake_engine.calls == ["compile"]

    def test_same_pattern_twice_gives_independent_handles(self, re2_engine) -> None:
        """Two compiles of one pattern: distinct handles, identical results."""
        lines = [b"abc", b"xabc", b"abcx", b"", b"abc"]
        first = compile_pattern(r"^abc$", re2_engine)
        second = compile_pattern(r"^abc$", re2_engine)
        assert first is not second
        assert first.database is not second.database

        with provision_workspace(first) as ws1, provision_workspace(second) as ws2:
            results_1 = [scan_line(first, ws1, line) for line in lines]
            results_2 = [scan_line(second, ws2, line) for line in lines]
        assert results_1 == results_2 == [True, False, False, False, True]

        first.release()
        # Releasing one handle leaves the other usable.
        with provision_workspace(second) as ws:
            assert scan_line(second, ws, b"abc") is True
        second.release()


# ─── NUL byte rejection ───────────────────────────────────────────────────────


class TestInvalidPattern:
    def test_nul_in_str_pattern_rejected(self, fake_engine) -> None:
        with pytest.raises(InvalidPatternError):
            compile_pattern("ab\x00c", fake_engine)

    def test_nul_in_bytes_pattern_rejected(self, fake_engine) -> None:
        with pytest.raises(InvalidPatternError):
            compile_pattern(b"\x00", fake_engine)

    def test_engine_never_called(self, fake_engine) -> None:
        with pytest.raises(InvalidPatternError):
            compile_pattern("abc\x00", fake_engine)
        assert fake_engine.calls == []

    def test_message_names_the_problem(self) -> None:
        with pytest.raises(InvalidPatternError) as exc_info:
            encode_pattern("a\x00b")
        assert "NUL" in str(exc_info.value)

    def test_encode_pattern_passes_clean_input(self) -> None:
        assert encode_pattern("^a+$") == b"^a+$"

    def test_undecodable_argv_bytes_passed_through(self, fake_engine) -> None:
        handle = compile_pattern("a\udcffb", fake_engine)
        assert handle.pattern == b"a\xffb"

    def test_unencodable_surrogate_rejected(self, fake_engine) -> None:
        with pytest.raises(InvalidPatternError) as exc_info:
            compile_pattern("\ud800", fake_engine)
        assert exc_info.value.context == "compile pattern"
        assert fake_engine.calls == []

    def test_non_utf8_pattern_is_compile_error_on_re2(self, re2_engine) -> None:
        with pytest.raises(CompileError) as exc_info:
            compile_pattern("\udcff", re2_engine)
        assert "UTF-8" in exc_info.value.diagnostic


# ─── Compile failure ──────────────────────────────────────────────────────────


class TestCompileFailure:
    def test_re2_diagnostic_is_propagated(self, re2_engine) -> None:
        with pytest.raises(CompileError) as exc_info:
            compile_pattern("[unterminated", re2_engine)
        assert exc_info.value.diagnostic
        assert exc_info.value.diagnostic in str(exc_info.value)

    def test_error_record_freed_exactly_once(self, fake_engine) -> None:
        fake_engine.compile_status = Status.COMPILER_ERROR
        with pytest.raises(CompileError):
            compile_pattern("abc", fake_engine)
        assert fake_engine.count("free_compile_error") == 1
        assert fake_engine.freed_errors[0].freed is True

    def test_error_freed_after_message_read(self, fake_engine) -> None:
        fake_engine.compile_status = Status.COMPILER_ERROR
        fake_engine.compile_message = "Missing close bracket"
        with pytest.raises(CompileError) as exc_info:
            compile_pattern("[abc", fake_engine)
        assert exc_info.value.diagnostic == "Missing close bracket"

    def test_generic_message_when_engine_supplies_none(self, fake_engine) -> None:
        fake_engine.compile_status = Status.COMPILER_ERROR
        fake_engine.compile_message = None
        with pytest.raises(CompileError) as exc_info:
            compile_pattern("abc", fake_engine)
        assert exc_info.value.diagnostic == UNKNOWN_COMPILE_ERROR

    def test_no_database_freed_on_failure(self, fake_engine) -> None:
        fake_engine.compile_status = Status.COMPILER_ERROR
        with pytest.raises(CompileError):
            compile_pattern("abc", fake_engine)
        assert fake_engine.count("free_database") == 0


# ─── Release ──────────────────────────────────────────────────────────────────


class TestRelease:
    def test_release_is_idempotent(self, fake_engine) -> None:
        handle = compile_pattern("abc", fake_engine)
        handle.release()
        handle.release()
        assert fake_engine.count("free_database") == 1
        assert handle.released is True

    def test_context_manager_releases(self, fake_engine) -> None:
        with compile_pattern("abc", fake_engine) as handle:
            assert handle.released is False
        assert handle.released is True
        assert fake_engine.count("free_database") == 1

    def test_live_workspace_released_before_database(self, fake_engine) -> None:
        handle = compile_pattern("abc", fake_engine)
        workspace = provision_workspace(handle)
        handle.release()
        assert workspace.released is True
        assert fake_engine.calls[-2:] == ["free_workspace", "free_database"]

    def test_already_released_workspace_not_freed_again(self, fake_engine) -> None:
        handle = compile_pattern("abc", fake_engine)
        workspace = provision_workspace(handle)
        workspace.release()
        handle.release()
        assert fake_engine.count("free_workspace") == 1
        assert fake_engine.count("free_database") == 1

    def test_repr_shows_state(self, fake_engine) -> None:
        handle = compile_pattern("abc", fake_engine)
        assert "live" in repr(handle)
        handle.release()
        assert "released" in repr(handle)
