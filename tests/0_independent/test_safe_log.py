# tests/0_independent/test_safe_log.py

import io
import sys

import pytest

import psbundler.utils_logs as mod_utils_logs


def test_safe_log_writes_to_real_stderr(monkeypatch: pytest.MonkeyPatch) -> None:
    # --- setup ---
    buf = io.StringIO()
    monkeypatch.setattr(sys, "__stderr__", buf)

    # --- execute ---
    mod_utils_logs.safe_log("hello from safe_log")

    # --- verify ---
    assert "hello from safe_log" in buf.getvalue()


def test_safe_log_never_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    """Even a broken stream must not propagate an exception."""

    class BrokenStream(io.StringIO):
        def write(self, _s: str) -> int:
            raise OSError("broken")

    monkeypatch.setattr(sys, "__stderr__", BrokenStream())

    mod_utils_logs.safe_log("this goes nowhere")  # should not raise
