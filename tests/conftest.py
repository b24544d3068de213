from __future__ import annotations

import subprocess

import pytest


class FakeRun:
    """Stand-in for subprocess.run that records command lines."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.kwargs: list[dict] = []
        self.returncode = 0
        self.output = ""
        self.error: Exception | None = None

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        self.kwargs.append(kwargs)
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(args, self.returncode, stdout=self.output)

    @property
    def last(self) -> list[str]:
        return self.calls[-1]


@pytest.fixture
def fake_run(monkeypatch) -> FakeRun:
    fake = FakeRun()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake
