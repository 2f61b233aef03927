"""Unit tests for linegrep/scanner/scan_loop.py and scanner/reporter.py.

Verifies:
  - Anchored full-line patterns match exactly the whole line
  - Several matches in one line give one True outcome, and the scan halts
    after the first match event
  - Each call starts from a fresh "not matched" context
  - Failure statuses raise ScanError; SCAN_TERMINATED is a success
  - Handle/workspace pairing and liveness are enforced before the engine call
  - read_lines() terminator handling and iter_matching_lines() ordering
"""

from __future__ import annotations

import io

import pytest

from linegrep.engine.protocol import Status
from linegrep.errors import ScanError, StreamIOError
from linegrep.scanner.handle import compile_pattern
from linegrep.scanner.reporter import HALT_SCAN, ScanContext, report_match
from linegrep.scanner.scan_loop import iter_matching_lines, read_lines, scan_line
from linegrep.scanner.workspace import provision_workspace


@pytest.fixture
def abc_pair(re2_engine):
    handle = compile_pattern(r"^abc$", re2_engine)
    workspace = provision_workspace(handle)
    yield handle, workspace
    handle.release()


# ─── Match reporter ───────────────────────────────────────────────────────────


class TestReportMatch:
    def test_records_match_and_halts(self) -> None:
        context = ScanContext()
        assert report_match(0, 3, 7, 0, context) == HALT_SCAN
        assert context.matched is True

    def test_halt_value_is_non_zero(self) -> None:
        assert HALT_SCAN != 0

    def test_fresh_context_is_unmatched(self) -> None:
        context = ScanContext()
        assert context.matched is False


# ─── Anchored patterns ────────────────────────────────────────────────────────


class TestAnchoredPattern:
    def test_exact_line_matches(self, abc_pair) -> None:
        assert scan_line(*abc_pair, b"abc") is True

    def test_prefixed_line_does_not_match(self, abc_pair) -> None:
        assert scan_line(*abc_pair, b"xabc") is False

    def test_suffixed_line_does_not_match(self, abc_pair) -> None:
        assert scan_line(*abc_pair, b"abcx") is False

    def test_empty_line_does_not_match(self, abc_pair) -> None:
        assert scan_line(*abc_pair, b"") is False

    def test_outcome_does_not_leak_between_lines(self, abc_pair) -> None:
        assert scan_line(*abc_pair, b"abc") is True
        assert scan_line(*abc_pair, b"zzz") is False
        assert scan_line(*abc_pair, b"abc") is True

    def test_bytearray_line_accepted(self, abc_pair) -> None:
        assert scan_line(*abc_pair, bytearray(b"abc")) is True

    def test_invalid_utf8_line_scanned(self, re2_engine) -> None:
        with compile_pattern("needle", re2_engine) as handle:
            with provision_workspace(handle) as workspace:
                assert scan_line(handle, workspace, b"\xff\xfe needle \xc3") is True
                assert scan_line(handle, workspace, b"\xff\xfe") is False

    def test_invalid_utf8_never_matches_replacement_char(self, re2_engine) -> None:
        with compile_pattern("\ufffd", re2_engine) as handle:
            with provision_workspace(handle) as workspace:
                assert scan_line(handle, workspace, b"\xff") is False
                assert scan_line(handle, workspace, "\ufffd".encode("utf-8")) is True


# ─── Early exit ───────────────────────────────────────────────────────────────


class TestEarlyExit:
    def test_many_occurrences_same_outcome_as_one(self, re2_engine) -> None:
        with compile_pattern("ab", re2_engine) as handle:
            with provision_workspace(handle) as workspace:
                once = scan_line(handle, workspace, b"xxabxx")
                many = scan_line(handle, workspace, b"ab ab ab ab ab")
        assert once is many is True

    def test_scan_stops_after_first_event(self, fake_engine) -> None:
        handle = compile_pattern(b"ab", fake_engine)
        workspace = provision_workspace(handle)
        assert scan_line(handle, workspace, b"ab ab ab ab") is True
        assert fake_engine.events_delivered == 1

    def test_terminated_status_is_success(self, fake_engine) -> None:
        handle = compile_pattern(b"x", fake_engine)
        workspace = provision_workspace(handle)
        # FakeEngine returns SCAN_TERMINATED once the reporter halts it.
        assert scan_line(handle, workspace, b"x") is True


# ─── Failures ─────────────────────────────────────────────────────────────────


class TestScanFailure:
    def test_failure_status_raises_with_code(self, fake_engine) -> None:
        fake_engine.scan_status = Status.UNKNOWN_ERROR
        handle = compile_pattern(b"x", fake_engine)
        workspace = provision_workspace(handle)
        with pytest.raises(ScanError) as exc_info:
            scan_line(handle, workspace, b"x")
        assert exc_info.value.code == Status.UNKNOWN_ERROR

    def test_workspace_reusable_after_failure(self, fake_engine) -> None:
        fake_engine.scan_status = Status.UNKNOWN_ERROR
        fake_engine.fail_on_scan = 1
        handle = compile_pattern(b"x", fake_engine)
        workspace = provision_workspace(handle)
        with pytest.raises(ScanError):
            scan_line(handle, workspace, b"x")
        assert workspace.in_use is False
        assert scan_line(handle, workspace, b"x") is True

    def test_foreign_workspace_rejected(self, fake_engine) -> None:
        first = compile_pattern(b"x", fake_engine)
        second = compile_pattern(b"x", fake_engine)
        workspace = provision_workspace(second)
        with pytest.raises(ScanError) as exc_info:
            scan_line(first, workspace, b"x")
        assert exc_info.value.code == Status.INVALID
        assert fake_engine.count("scan") == 0

    def test_released_handle_rejected(self, fake_engine) -> None:
        handle = compile_pattern(b"x", fake_engine)
        workspace = provision_workspace(handle)
        handle.release()
        with pytest.raises(ScanError) as exc_info:
            scan_line(handle, workspace, b"x")
        assert exc_info.value.code == Status.INVALID

    def test_released_workspace_rejected(self, fake_engine) -> None:
        handle = compile_pattern(b"x", fake_engine)
        workspace = provision_workspace(handle)
        workspace.release()
        with pytest.raises(ScanError):
            scan_line(handle, workspace, b"x")
        assert fake_engine.count("scan") == 0

    def test_workspace_in_use_rejected(self, fake_engine) -> None:
        handle = compile_pattern(b"x", fake_engine)
        workspace = provision_workspace(handle)
        workspace.in_use = True
        with pytest.raises(ScanError) as exc_info:
            scan_line(handle, workspace, b"x")
        assert exc_info.value.code == Status.SCRATCH_IN_USE


# ─── read_lines / iter_matching_lines ────────────────────────────────────────


class TestReadLines:
    def test_strips_newline(self) -> None:
        assert list(read_lines(io.BytesIO(b"a\nb\n"))) == [b"a", b"b"]

    def test_final_line_without_newline_kept(self) -> None:
        assert list(read_lines(io.BytesIO(b"a\nlast"))) == [b"a", b"last"]

    def test_crlf_terminator_stripped(self) -> None:
        assert list(read_lines(io.BytesIO(b"a\r\nb\r\n"))) == [b"a", b"b"]

    def test_blank_lines_preserved(self) -> None:
        assert list(read_lines(io.BytesIO(b"\n\nx\n"))) == [b"", b"", b"x"]

    def test_empty_stream(self) -> None:
        assert list(read_lines(io.BytesIO(b""))) == []

    def test_read_failure_raises_stream_error(self) -> None:
        class _Broken(io.RawIOBase):
            def readline(self, size: int = -1) -> bytes:
                raise OSError("device gone")

        with pytest.raises(StreamIOError) as exc_info:
            list(read_lines(_Broken()))
        assert exc_info.value.direction == "read"
        assert "device gone" in str(exc_info.value)


class TestIterMatchingLines:
    def test_preserves_input_order(self, re2_engine) -> None:
        lines = [b"b1", b"a1", b"b2", b"c", b"b3"]
        with compile_pattern("^b", re2_engine) as handle:
            with provision_workspace(handle) as workspace:
                assert list(iter_matching_lines(handle, workspace, lines)) == [
                    b"b1",
                    b"b2",
                    b"b3",
                ]
