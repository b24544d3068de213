from __future__ import annotations

import pytest

from devkit.build import BuildError, build_solution, find_solution, normalize_action

DEVENV = r"C:\VS\Common7\IDE\devenv.com"


def test_find_solution_single(tmp_path) -> None:
    sln = tmp_path / "App.sln"
    sln.write_text("")

    assert find_solution(tmp_path) == sln


def test_find_solution_none(tmp_path) -> None:
    with pytest.raises(BuildError) as exc_info:
        find_solution(tmp_path)

    assert "No solution" in str(exc_info.value)


def test_find_solution_several(tmp_path) -> None:
    (tmp_path / "A.sln").write_text("")
    (tmp_path / "B.sln").write_text("")

    with pytest.raises(BuildError) as exc_info:
        find_solution(tmp_path)

    assert "A.sln, B.sln" in str(exc_info.value)


def test_build_command_line(fake_run, tmp_path) -> None:
    sln = tmp_path / "App.sln"
    sln.write_text("")
    log = tmp_path / "logs" / "build.log"

    build_solution(sln, devenv=DEVENV, action="rebuild", configuration="Debug", platform="x64", project="Core", log_file=log)

    assert fake_run.last == [
        DEVENV, str(sln.resolve()), "/Rebuild", "Debug|x64", "/Project", "Core", "/Out", str(log.resolve()),
    ]
    assert fake_run.kwargs[-1]["cwd"] == str(tmp_path.resolve())
    assert log.parent.is_dir()


def test_relative_paths_are_resolved_against_caller(fake_run, tmp_path, monkeypatch) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / "App.sln").write_text("")
    monkeypatch.chdir(tmp_path)

    build_solution("src/App.sln", devenv=DEVENV, log_file="logs/build.log")

    cmd = fake_run.last
    assert cmd[1] == str((src / "App.sln").resolve())
    assert cmd[cmd.index("/Out") + 1] == str((tmp_path / "logs" / "build.log").resolve())
    assert fake_run.kwargs[-1]["cwd"] == str(src.resolve())
    assert (tmp_path / "logs").is_dir()


def test_relative_directory_resolves_solution(fake_run, tmp_path, monkeypatch) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / "App.sln").write_text("")
    monkeypatch.chdir(tmp_path)

    build_solution("src", devenv=DEVENV)

    assert fake_run.last[1] == str((src / "App.sln").resolve())
    assert fake_run.last[2:] == ["/Build", "Release"]


def test_devenv_exe_is_replaced_with_com(fake_run, tmp_path) -> None:
    (tmp_path / "App.sln").write_text("")

    build_solution(tmp_path / "App.sln", devenv=r"C:\VS\Common7\IDE\devenv.exe")

    assert fake_run.last[0] == DEVENV


def test_build_failure_includes_output(fake_run, tmp_path) -> None:
    (tmp_path / "App.sln").write_text("")
    fake_run.returncode = 1
    fake_run.output = "========== Build: 0 succeeded, 1 failed =========="

    with pytest.raises(BuildError) as exc_info:
        build_solution(tmp_path / "App.sln", devenv=DEVENV)

    assert "exit code 1" in str(exc_info.value)
    assert "1 failed" in str(exc_info.value)


def test_missing_solution(fake_run, tmp_path) -> None:
    with pytest.raises(BuildError):
        build_solution(tmp_path / "Nope.sln", devenv=DEVENV)
    assert fake_run.calls == []


def test_normalize_action() -> None:
    assert normalize_action("clean") == "Clean"
    with pytest.raises(BuildError):
        normalize_action("publish")
