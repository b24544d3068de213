"""
build.py

Responsibility: build Visual Studio solutions from the command line via devenv.com.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devkit.process import ProcessError, run, tail
from devkit.tools import console_devenv

logger = logging.getLogger(__name__)

ACTIONS = ("Build", "Rebuild", "Clean", "Deploy")


class BuildError(ProcessError):
    pass


def find_solution(directory: str | Path) -> Path:
    """Return the single .sln file in `directory`."""
    root = Path(directory)
    if not root.is_dir():
        raise BuildError(f"Directory does not exist: {root}")
    solutions = sorted(root.glob("*.sln"))
    if not solutions:
        raise BuildError(f"No solution file found in {root}")
    if len(solutions) > 1:
        names = ", ".join(s.name for s in solutions)
        raise BuildError(f"More than one solution in {root} ({names}); pass one explicitly")
    return solutions[0]


def normalize_action(action: str) -> str:
    for known in ACTIONS:
        if known.lower() == action.strip().lower():
            return known
    raise BuildError(f"Unknown build action {action!r}; expected one of {', '.join(ACTIONS)}")


def solution_config(configuration: str, platform: str | None) -> str:
    return f"{configuration}|{platform}" if platform else configuration


def build_solution(
    solution: str | Path,
    *,
    devenv: str,
    action: str = "Build",
    configuration: str = "Release",
    platform: str | None = None,
    project: str | None = None,
    log_file: str | Path | None = None,
) -> None:
    # devenv runs from the solution directory, so every path handed to it is absolute.
    sln = Path(solution).resolve()
    if sln.is_dir():
        sln = find_solution(sln)
    if not sln.is_file():
        raise BuildError(f"Solution file does not exist: {sln}")

    verb = normalize_action(action)
    cmd = [console_devenv(devenv), str(sln), f"/{verb}", solution_config(configuration, platform)]
    if project:
        cmd.extend(["/Project", project])
    if log_file:
        log_path = Path(log_file).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        cmd.extend(["/Out", str(log_path)])

    logger.info("%s %s (%s)", verb, sln.name, solution_config(configuration, platform))
    try:
        run(cmd, cwd=sln.parent)
    except ProcessError as e:
        detail = f"exit code {e.returncode}" if e.returncode is not None else str(e)
        raise BuildError(
            f"{verb} of {sln.name} failed ({detail})\n\n{tail(e.output)}",
            cmd=e.cmd,
            returncode=e.returncode,
            output=e.output,
        ) from e
    logger.info("%s of %s succeeded", verb, sln.name)
