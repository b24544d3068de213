"""
tools.py

Responsibility: locate the external executables the other modules wrap.

Lookup order per tool is: configured path -> PATH -> installer metadata (registry,
vswhere) -> well-known install directory. Registry reads only happen on Windows.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path, PureWindowsPath

from devkit.process import ProcessError, run
from devkit.settings import Settings

if sys.platform == "win32":
    import winreg
else:
    winreg = None

logger = logging.getLogger(__name__)


class ToolNotFoundError(RuntimeError):
    pass


@dataclass(frozen=True)
class ToolStatus:
    name: str
    path: str | None
    source: str | None = None
    setting: str | None = None

    @property
    def found(self) -> bool:
        return self.path is not None


def read_registry_value(key: str, value_name: str) -> str | None:
    """Read a string value under HKEY_LOCAL_MACHINE; None if absent or not on Windows."""
    if winreg is None:
        return None
    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, key) as handle:
            value, _kind = winreg.QueryValueEx(handle, value_name)
    except OSError:
        return None
    return str(value) if value else None


def read_registry_values(key: str) -> dict[str, str]:
    """Return all string values under an HKEY_LOCAL_MACHINE key."""
    if winreg is None:
        return {}
    out: dict[str, str] = {}
    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, key) as handle:
            index = 0
            while True:
                try:
                    name, value, _kind = winreg.EnumValue(handle, index)
                except OSError:
                    break
                if isinstance(value, str) and value:
                    out[name] = value
                index += 1
    except OSError:
        return {}
    return out


def _configured(path: str | None) -> str | None:
    if path and Path(path).is_file():
        return path
    if path:
        logger.warning("Configured path does not exist: %s", path)
    return None


def _existing(path: str | PureWindowsPath) -> str | None:
    return str(path) if Path(str(path)).is_file() else None


def _version_key(version: str) -> tuple[int, ...]:
    parts = []
    for part in version.split("."):
        parts.append(int(part) if part.isdigit() else 0)
    return tuple(parts)


def console_devenv(path: str) -> str:
    """devenv.exe opens the IDE; the console-friendly devenv.com sits next to it."""
    p = PureWindowsPath(path)
    if p.name.lower() == "devenv.exe":
        return str(p.with_name("devenv.com"))
    return path


def find_seven_zip(settings: Settings) -> ToolStatus:
    name, setting = "7-Zip", "seven_zip_path"
    path = _configured(settings.seven_zip_path)
    if path:
        return ToolStatus(name, path, "settings", setting)
    path = shutil.which("7z") or shutil.which("7za")
    if path:
        return ToolStatus(name, path, "path", setting)
    for value_name in ("Path64", "Path"):
        install_dir = read_registry_value(r"SOFTWARE\7-Zip", value_name)
        if install_dir:
            path = _existing(PureWindowsPath(install_dir) / "7z.exe")
            if path:
                return ToolStatus(name, path, "registry", setting)
    program_files = os.environ.get("ProgramFiles", r"C:\Program Files")
    path = _existing(PureWindowsPath(program_files) / "7-Zip" / "7z.exe")
    if path:
        return ToolStatus(name, path, "default", setting)
    return ToolStatus(name, None, None, setting)


def find_robocopy(settings: Settings) -> ToolStatus:
    name, setting = "Robocopy", "robocopy_path"
    path = _configured(settings.robocopy_path)
    if path:
        return ToolStatus(name, path, "settings", setting)
    path = shutil.which("robocopy")
    if path:
        return ToolStatus(name, path, "path", setting)
    system_root = os.environ.get("SystemRoot", r"C:\Windows")
    path = _existing(PureWindowsPath(system_root) / "System32" / "robocopy.exe")
    if path:
        return ToolStatus(name, path, "default", setting)
    return ToolStatus(name, None, None, setting)


def _vswhere_devenv() -> str | None:
    program_files_x86 = os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)")
    vswhere = _existing(PureWindowsPath(program_files_x86) / "Microsoft Visual Studio" / "Installer" / "vswhere.exe")
    if not vswhere:
        return None
    try:
        result = run([vswhere, "-latest", "-prerelease", "-property", "productPath"])
    except ProcessError as e:
        logger.warning("vswhere failed: %s", e)
        return None
    product = result.output.strip().splitlines()
    return console_devenv(product[0].strip()) if product else None


def _registry_devenv() -> str | None:
    for key in (
        r"SOFTWARE\WOW6432Node\Microsoft\VisualStudio\SxS\VS7",
        r"SOFTWARE\Microsoft\VisualStudio\SxS\VS7",
    ):
        versions = read_registry_values(key)
        for version in sorted(versions, key=_version_key, reverse=True):
            path = _existing(PureWindowsPath(versions[version]) / "Common7" / "IDE" / "devenv.com")
            if path:
                return path
    return None


def find_devenv(settings: Settings) -> ToolStatus:
    name, setting = "Visual Studio (devenv.com)", "devenv_path"
    path = _configured(settings.devenv_path)
    if path:
        return ToolStatus(name, console_devenv(path), "settings", setting)
    path = _vswhere_devenv()
    if path:
        return ToolStatus(name, path, "vswhere", setting)
    path = _registry_devenv()
    if path:
        return ToolStatus(name, path, "registry", setting)
    path = shutil.which("devenv.com") or shutil.which("devenv")
    if path:
        return ToolStatus(name, console_devenv(path), "path", setting)
    return ToolStatus(name, None, None, setting)


def find_git(settings: Settings) -> ToolStatus:
    path = shutil.which("git")
    return ToolStatus("Git", path, "path" if path else None)


def check_prerequisites(settings: Settings) -> list[ToolStatus]:
    return [
        find_seven_zip(settings),
        find_robocopy(settings),
        find_devenv(settings),
        find_git(settings),
    ]


def require(status: ToolStatus) -> str:
    """Return the tool path or raise a ToolNotFoundError telling the user what to configure."""
    if status.path:
        return status.path
    hint = f" (set `{status.setting}` with `devkit configure`)" if status.setting else ""
    raise ToolNotFoundError(f"{status.name} was not found{hint}")
