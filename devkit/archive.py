"""
archive.py

Responsibility: translate compress / extract / test requests into 7z.exe command lines.

7-Zip exit codes:
    0   no error
    1   warning (e.g. some files were locked); the archive is still usable
    2   fatal error
    7   command line error
    8   not enough memory
    255 user stopped the process
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from devkit.process import ProcessError, ProcessResult, run, tail

logger = logging.getLogger(__name__)

EXIT_CODES = {
    0: "no error",
    1: "warning",
    2: "fatal error",
    7: "command line error",
    8: "not enough memory for operation",
    255: "user stopped the process",
}

SUFFIX_TYPES = {
    ".7z": "7z",
    ".zip": "zip",
    ".tar": "tar",
    ".gz": "gzip",
    ".tgz": "gzip",
    ".bz2": "bzip2",
    ".xz": "xz",
    ".wim": "wim",
}


class ArchiveError(ProcessError):
    pass


def archive_type_for(path: str | Path) -> str:
    return SUFFIX_TYPES.get(Path(path).suffix.lower(), "7z")


def _run_7z(cmd: list[str], action: str) -> ProcessResult:
    try:
        result = run(cmd, ok_codes=EXIT_CODES.keys())
    except ProcessError as e:
        raise ArchiveError(f"7-Zip could not {action}: {e}", cmd=e.cmd, returncode=e.returncode, output=e.output) from e

    if result.returncode == 1:
        logger.warning("7-Zip reported warnings while trying to %s:\n%s", action, tail(result.output))
    elif result.returncode != 0:
        meaning = EXIT_CODES[result.returncode]
        raise ArchiveError(
            f"7-Zip could not {action} ({result.returncode}: {meaning})\n\n{tail(result.output)}",
            cmd=result.cmd,
            returncode=result.returncode,
            output=result.output,
        )
    return result


def compress(
    archive: str | Path,
    sources: Sequence[str | Path],
    *,
    seven_zip: str,
    archive_type: str | None = None,
    level: int | None = None,
    password: str | None = None,
    excludes: Iterable[str] = (),
    update: bool = False,
) -> Path:
    """
    Add `sources` to `archive` (created if needed). Returns the archive path.

    With `update` set, files already in the archive are only replaced when newer.
    """
    if not sources:
        raise ArchiveError("Nothing to compress: no sources given.")
    if level is not None and not 0 <= level <= 9:
        raise ArchiveError(f"Compression level must be between 0 and 9, got {level}.")

    archive_path = Path(archive)
    kind = archive_type or archive_type_for(archive_path)
    archive_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = [seven_zip, "u" if update else "a", f"-t{kind}"]
    if level is not None:
        cmd.append(f"-mx={level}")
    if password:
        cmd.append(f"-p{password}")
        if kind == "7z":
            # Also encrypt file names.
            cmd.append("-mhe=on")
    cmd.extend(f"-xr!{pattern}" for pattern in excludes)
    cmd.append("-y")
    cmd.append(str(archive_path))
    cmd.extend(str(s) for s in sources)

    logger.info("Compressing %d source(s) into %s", len(sources), archive_path)
    _run_7z(cmd, f"create {archive_path}")
    return archive_path


def extract(
    archive: str | Path,
    destination: str | Path,
    *,
    seven_zip: str,
    password: str | None = None,
    overwrite: bool = True,
    flatten: bool = False,
) -> Path:
    """
    Extract `archive` into `destination`. With `flatten`, directory structure is dropped.
    """
    archive_path = Path(archive)
    if not archive_path.is_file():
        raise ArchiveError(f"Archive does not exist: {archive_path}")
    dest = Path(destination)
    dest.mkdir(parents=True, exist_ok=True)

    cmd = [seven_zip, "e" if flatten else "x", str(archive_path), f"-o{dest}", "-aoa" if overwrite else "-aos"]
    if password:
        cmd.append(f"-p{password}")
    cmd.append("-y")

    logger.info("Extracting %s into %s", archive_path, dest)
    _run_7z(cmd, f"extract {archive_path}")
    return dest


def verify_archive(archive: str | Path, *, seven_zip: str, password: str | None = None) -> None:
    archive_path = Path(archive)
    if not archive_path.is_file():
        raise ArchiveError(f"Archive does not exist: {archive_path}")
    cmd = [seven_zip, "t", str(archive_path)]
    if password:
        cmd.append(f"-p{password}")
    cmd.append("-y")
    _run_7z(cmd, f"test {archive_path}")
