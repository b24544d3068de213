"""
sync.py

Responsibility: directory synchronization through robocopy.exe.

Robocopy's exit code is a bitmask; anything below 8 means the copy succeeded.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from devkit.process import ProcessError, run, tail

logger = logging.getLogger(__name__)

FILES_COPIED = 1
EXTRA_FILES = 2
MISMATCHED = 4
COPY_FAILED = 8
FATAL = 16

FLAG_MEANINGS = {
    FILES_COPIED: "files were copied",
    EXTRA_FILES: "extra files or directories were detected",
    MISMATCHED: "mismatched files or directories were detected",
    COPY_FAILED: "some files or directories could not be copied",
    FATAL: "fatal error, no files were copied",
}


class SyncError(ProcessError):
    pass


@dataclass(frozen=True)
class SyncResult:
    returncode: int
    output: str

    @property
    def copied(self) -> bool:
        return bool(self.returncode & FILES_COPIED)

    @property
    def extras(self) -> bool:
        return bool(self.returncode & EXTRA_FILES)

    @property
    def mismatched(self) -> bool:
        return bool(self.returncode & MISMATCHED)


def describe_exit_code(code: int) -> str:
    if code == 0:
        return "no changes, source and destination are in sync"
    return "; ".join(meaning for flag, meaning in FLAG_MEANINGS.items() if code & flag)


def build_sync_command(
    source: str | Path,
    destination: str | Path,
    *,
    robocopy: str,
    mirror: bool = False,
    files: Iterable[str] = (),
    exclude_files: Iterable[str] = (),
    exclude_dirs: Iterable[str] = (),
    retries: int = 1,
    wait: int = 1,
    threads: int | None = None,
    dry_run: bool = False,
    log_file: str | Path | None = None,
) -> list[str]:
    cmd = [robocopy, str(source), str(destination), *files]
    cmd.append("/MIR" if mirror else "/E")
    exclude_files = list(exclude_files)
    if exclude_files:
        cmd.extend(["/XF", *exclude_files])
    exclude_dirs = list(exclude_dirs)
    if exclude_dirs:
        cmd.extend(["/XD", *exclude_dirs])
    cmd.extend([f"/R:{retries}", f"/W:{wait}"])
    if threads:
        cmd.append(f"/MT:{threads}")
    if dry_run:
        cmd.append("/L")
    if log_file:
        cmd.append(f"/LOG:{log_file}")
    cmd.append("/NP")
    return cmd


def sync(
    source: str | Path,
    destination: str | Path,
    *,
    robocopy: str,
    mirror: bool = False,
    files: Iterable[str] = (),
    exclude_files: Iterable[str] = (),
    exclude_dirs: Iterable[str] = (),
    retries: int = 1,
    wait: int = 1,
    threads: int | None = None,
    dry_run: bool = False,
    log_file: str | Path | None = None,
) -> SyncResult:
    """
    Copy the `source` tree into `destination`. With `mirror`, files missing from
    `source` are deleted from `destination` as well.
    """
    src = Path(source)
    if not src.is_dir():
        raise SyncError(f"Source directory does not exist: {src}")
    if retries < 0 or wait < 0:
        raise SyncError("Retries and wait time must not be negative.")

    cmd = build_sync_command(
        src,
        destination,
        robocopy=robocopy,
        mirror=mirror,
        files=files,
        exclude_files=exclude_files,
        exclude_dirs=exclude_dirs,
        retries=retries,
        wait=wait,
        threads=threads,
        dry_run=dry_run,
        log_file=log_file,
    )
    logger.info("%s %s -> %s", "Mirroring" if mirror else "Copying", src, destination)
    try:
        result = run(cmd, ok_codes=range(256))
    except ProcessError as e:
        raise SyncError(str(e), cmd=e.cmd, returncode=e.returncode, output=e.output) from e

    if result.returncode >= COPY_FAILED:
        raise SyncError(
            f"Robocopy failed ({result.returncode}: {describe_exit_code(result.returncode)})\n\n{tail(result.output)}",
            cmd=result.cmd,
            returncode=result.returncode,
            output=result.output,
        )
    logger.info("Robocopy finished: %s", describe_exit_code(result.returncode))
    return SyncResult(returncode=result.returncode, output=result.output)
