"""
process.py

Responsibility: run external executables (7z.exe, robocopy.exe, devenv.com, vswhere.exe).

Every wrapper in this package goes through `run()` so that command logging, output
capture and exit-code checking behave the same way everywhere.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class ProcessError(RuntimeError):
    def __init__(self, message: str, *, cmd: Sequence[str] = (), returncode: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.cmd = list(cmd)
        self.returncode = returncode
        self.output = output


@dataclass(frozen=True)
class ProcessResult:
    cmd: list[str]
    returncode: int
    output: str


def format_cmd(cmd: Sequence[str]) -> str:
    return subprocess.list2cmdline([str(c) for c in cmd])


def tail(output: str, lines: int = 20) -> str:
    """Return the last `lines` lines of `output`."""
    return "\n".join(output.rstrip().splitlines()[-lines:])


def run(
    cmd: Sequence[str | Path],
    *,
    cwd: Path | None = None,
    ok_codes: Iterable[int] = (0,),
    env: dict[str, str] | None = None,
) -> ProcessResult:
    """
    Run a subprocess command with stdout/stderr merged, raising ProcessError on failure.

    `ok_codes` lists the exit codes treated as success; callers with richer exit code
    semantics (robocopy, 7-Zip) pass their own set and interpret the result.
    """
    args = [str(c) for c in cmd]
    logger.debug("Running: %s", format_cmd(args))
    try:
        proc = subprocess.run(
            args,
            cwd=str(cwd) if cwd else None,
            env=env,
            check=False,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as e:
        raise ProcessError(f"Executable not found: {args[0]}", cmd=args) from e
    except OSError as e:
        raise ProcessError(f"Could not start {args[0]}: {e}", cmd=args) from e

    output = proc.stdout or ""
    if proc.returncode not in set(ok_codes):
        raise ProcessError(
            f"Command failed with exit code {proc.returncode}: {format_cmd(args)}\n\n{tail(output)}",
            cmd=args,
            returncode=proc.returncode,
            output=output,
        )
    return ProcessResult(cmd=args, returncode=proc.returncode, output=output)
