from __future__ import annotations

import pytest

from devkit.archive import ArchiveError, archive_type_for, compress, extract, verify_archive

SEVEN_ZIP = r"C:\Program Files\7-Zip\7z.exe"


@pytest.mark.parametrize(
    ("name", "expected"),
    [("out.zip", "zip"), ("OUT.7Z", "7z"), ("logs.tgz", "gzip"), ("bundle.tar", "tar"), ("weird.bin", "7z")],
)
def test_archive_type_for(name: str, expected: str) -> None:
    assert archive_type_for(name) == expected


def test_compress_builds_command(fake_run, tmp_path) -> None:
    archive = tmp_path / "dist" / "release.zip"

    result = compress(archive, ["bin", "README.md"], seven_zip=SEVEN_ZIP, level=9, excludes=["*.pdb"])

    assert result == archive
    assert archive.parent.is_dir()
    assert fake_run.last == [SEVEN_ZIP, "a", "-tzip", "-mx=9", "-xr!*.pdb", "-y", str(archive), "bin", "README.md"]


def test_compress_encrypts_7z_headers(fake_run, tmp_path) -> None:
    compress(tmp_path / "secret.7z", ["data"], seven_zip=SEVEN_ZIP, password="pw")

    assert "-ppw" in fake_run.last
    assert "-mhe=on" in fake_run.last


def test_compress_update_uses_u(fake_run, tmp_path) -> None:
    compress(tmp_path / "a.7z", ["data"], seven_zip=SEVEN_ZIP, update=True)

    assert fake_run.last[1] == "u"


def test_compress_rejects_bad_level(fake_run, tmp_path) -> None:
    with pytest.raises(ArchiveError):
        compress(tmp_path / "a.7z", ["data"], seven_zip=SEVEN_ZIP, level=11)
    assert fake_run.calls == []


def test_compress_requires_sources(fake_run, tmp_path) -> None:
    with pytest.raises(ArchiveError):
        compress(tmp_path / "a.7z", [], seven_zip=SEVEN_ZIP)


def test_warning_exit_code_is_not_fatal(fake_run, tmp_path, caplog) -> None:
    fake_run.returncode = 1
    fake_run.output = "WARNING: file is locked"

    compress(tmp_path / "a.7z", ["data"], seven_zip=SEVEN_ZIP)

    assert "warnings" in caplog.text


def test_fatal_exit_code_raises(fake_run, tmp_path) -> None:
    fake_run.returncode = 2
    fake_run.output = "ERROR: cannot open"

    with pytest.raises(ArchiveError) as exc_info:
        compress(tmp_path / "a.7z", ["data"], seven_zip=SEVEN_ZIP)

    assert exc_info.value.returncode == 2
    assert "fatal error" in str(exc_info.value)
    assert "cannot open" in str(exc_info.value)


def test_unknown_exit_code_raises(fake_run, tmp_path) -> None:
    fake_run.returncode = 42
    with pytest.raises(ArchiveError):
        compress(tmp_path / "a.7z", ["data"], seven_zip=SEVEN_ZIP)


def test_extract_builds_command(fake_run, tmp_path) -> None:
    archive = tmp_path / "pkg.zip"
    archive.write_bytes(b"PK")
    dest = tmp_path / "out"

    extract(archive, dest, seven_zip=SEVEN_ZIP)

    assert fake_run.last == [SEVEN_ZIP, "x", str(archive), f"-o{dest}", "-aoa", "-y"]
    assert dest.is_dir()


def test_extract_flatten_and_keep_existing(fake_run, tmp_path) -> None:
    archive = tmp_path / "pkg.zip"
    archive.write_bytes(b"PK")

    extract(archive, tmp_path / "out", seven_zip=SEVEN_ZIP, overwrite=False, flatten=True, password="pw")

    assert fake_run.last[1] == "e"
    assert "-aos" in fake_run.last
    assert "-ppw" in fake_run.last


def test_extract_missing_archive(fake_run, tmp_path) -> None:
    with pytest.raises(ArchiveError) as exc_info:
        extract(tmp_path / "nope.zip", tmp_path / "out", seven_zip=SEVEN_ZIP)
    assert "does not exist" in str(exc_info.value)


def test_verify_archive(fake_run, tmp_path) -> None:
    archive = tmp_path / "pkg.7z"
    archive.write_bytes(b"7z")

    verify_archive(archive, seven_zip=SEVEN_ZIP)

    assert fake_run.last == [SEVEN_ZIP, "t", str(archive), "-y"]
