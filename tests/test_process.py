from __future__ import annotations

import pytest

from devkit.process import ProcessError, run, tail


def test_run_returns_output(fake_run) -> None:
    fake_run.output = "hello\n"
    result = run(["tool", "--flag"])
    assert result.returncode == 0
    assert result.output == "hello\n"
    assert fake_run.last == ["tool", "--flag"]


def test_run_merges_stderr_and_closes_stdin(fake_run) -> None:
    import subprocess

    run(["tool"])
    kwargs = fake_run.kwargs[-1]
    assert kwargs["stderr"] == subprocess.STDOUT
    assert kwargs["stdin"] == subprocess.DEVNULL


def test_run_raises_on_unexpected_exit_code(fake_run) -> None:
    fake_run.returncode = 3
    fake_run.output = "boom"
    with pytest.raises(ProcessError) as exc_info:
        run(["tool"])
    assert exc_info.value.returncode == 3
    assert exc_info.value.output == "boom"
    assert "boom" in str(exc_info.value)


def test_run_accepts_custom_ok_codes(fake_run) -> None:
    fake_run.returncode = 1
    assert run(["tool"], ok_codes=(0, 1)).returncode == 1


def test_run_missing_executable(fake_run) -> None:
    fake_run.error = FileNotFoundError("nope")
    with pytest.raises(ProcessError) as exc_info:
        run(["missing.exe"])
    assert "Executable not found" in str(exc_info.value)
    assert exc_info.value.returncode is None


def test_tail_keeps_last_lines() -> None:
    text = "\n".join(str(i) for i in range(50))
    assert tail(text, 3) == "47\n48\n49"
