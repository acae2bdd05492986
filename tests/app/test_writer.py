import os
import stat

import pytest

from testsummary.app.errors import OutputWriteError
from testsummary.app.writer import ensure_directory, write_bytes


def test_missing_directory_is_created(tmp_path):
    target = tmp_path / "a" / "b" / "c"
    assert ensure_directory(target) == target
    assert target.is_dir()


def test_existing_directory_is_left_alone(tmp_path):
    (tmp_path / "keep.txt").write_text("x")
    ensure_directory(tmp_path)
    assert (tmp_path / "keep.txt").read_text() == "x"


def test_directory_creation_failure_is_an_io_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(OutputWriteError) as exc:
        ensure_directory(blocker / "sub")
    assert isinstance(exc.value, OSError)
    assert exc.value.path == str(blocker / "sub")


def test_write_overwrites_and_leaves_no_temp_files(tmp_path):
    out = tmp_path / "out"
    write_bytes(out, "index.htm", b"first")
    path = write_bytes(out, "index.htm", b"second")
    assert path == out / "index.htm"
    assert path.read_bytes() == b"second"
    assert sorted(p.name for p in out.iterdir()) == ["index.htm"]


def test_failed_write_keeps_previous_file(tmp_path, monkeypatch):
    out = tmp_path / "out"
    write_bytes(out, "index.htm", b"previous")

    def failing_replace(src, dst):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(os, "replace", failing_replace)
    with pytest.raises(OutputWriteError) as exc:
        write_bytes(out, "index.htm", b"partial")
    assert exc.value.errno == 13
    assert (out / "index.htm").read_bytes() == b"previous"
    assert sorted(p.name for p in out.iterdir()) == ["index.htm"]


def test_filename_with_subdirectory(tmp_path):
    out = tmp_path / "out"
    (out / "sub").mkdir(parents=True)
    path = write_bytes(out, "sub/index.htm", b"nested")
    assert path == out / "sub" / "index.htm"
    assert path.read_bytes() == b"nested"
    assert sorted(p.name for p in (out / "sub").iterdir()) == ["index.htm"]
    assert write_bytes(out, "new/deeper/index.htm", b"x").read_bytes() == b"x"


def test_new_file_mode_follows_umask(tmp_path):
    previous = os.umask(0o027)
    try:
        path = write_bytes(tmp_path, "index.htm", b"data")
    finally:
        os.umask(previous)
    assert stat.S_IMODE(path.stat().st_mode) == 0o640


def test_overwrite_keeps_existing_mode(tmp_path):
    path = tmp_path / "index.htm"
    path.write_bytes(b"old")
    path.chmod(0o600)
    write_bytes(tmp_path, "index.htm", b"new")
    assert path.read_bytes() == b"new"
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
