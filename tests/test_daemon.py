import os

import pytest

from probewatch.daemon import (
    DEFAULT_PID_FILE,
    PIDFile,
    PIDFileError,
    new_pid_file,
    process_exists,
)

_MISSING_PID = 99999999


def _assert_round_trip(pidfile):
    handle = new_pid_file(pidfile)
    with pytest.raises(PIDFileError) as info:
        handle.check()
    assert info.value.pid == os.getpid()
    handle.remove()
    assert not os.path.exists(handle.path)
    return handle


def test_pid_file_not_exist(tmp_path):
    target = tmp_path / DEFAULT_PID_FILE
    handle = _assert_round_trip(target)
    assert handle.path == str(target)


def test_pid_file_exist(tmp_path):
    target = tmp_path / DEFAULT_PID_FILE
    target.write_text("1")
    handle = new_pid_file(target)
    assert target.read_text() == str(os.getpid())
    handle.remove()
    assert not target.exists()


def test_pid_file_dir(tmp_path):
    handle = _assert_round_trip(tmp_path)
    assert handle.path == os.path.join(str(tmp_path), DEFAULT_PID_FILE)


def test_pid_file_symlink(tmp_path):
    folder = tmp_path / "test"
    folder.mkdir()
    (folder / "test.txt").write_text("Hello\n")
    link = folder / "probewatch.pid"
    os.symlink("test.txt", link)

    handle = new_pid_file(link)
    with pytest.raises(PIDFileError):
        handle.check()
    assert (folder / "test.txt").read_text() == "Hello\n"
    assert not os.path.islink(link)
    handle.remove()
    assert not link.exists()


def test_empty_pid_file_name():
    with pytest.raises(PIDFileError):
        new_pid_file("")


def test_nested_directories_are_created(tmp_path):
    target = tmp_path / "dir" / "sub" / "x.pid"
    handle = new_pid_file(target)
    assert target.read_text() == str(os.getpid())
    handle.remove()
    assert (tmp_path / "dir" / "sub").is_dir()


def test_parent_is_a_file(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    with pytest.raises(PIDFileError):
        new_pid_file(blocker / "x.pid")


def test_check_pid_file_states(tmp_path):
    target = tmp_path / "dir" / "probe.pid"
    handle = new_pid_file(target)
    with pytest.raises(PIDFileError) as info:
        handle.check()
    assert info.value.pid == os.getpid()

    target.write_text(str(_MISSING_PID))
    assert handle.check() is None

    target.write_text("invalid pid")
    assert handle.check() is None

    handle.remove()
    assert handle.check() is None


def test_check_with_unknown_path(tmp_path):
    assert PIDFile(path=str(tmp_path / "none.pid")).check() is None


def test_process_exists():
    assert process_exists(os.getpid()) is True
    assert process_exists(_MISSING_PID) is False
    assert process_exists(0) is False