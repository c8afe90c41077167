"""PID file handling for the running monitor."""

from __future__ import annotations

import os
import re
import stat
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

DEFAULT_PROG = "probewatch"
DEFAULT_PID_FILE = "probewatch.pid"

_PID_RE = re.compile(r"[+-]?[0-9]+")


class PIDFileError(OSError):
    """The PID file could not be created, or names a running process."""

    def __init__(self, message: str, pid: int | None = None):
        super().__init__(message)
        self.pid = pid


def _linux_process_exists(pid: int) -> bool:
    return os.path.exists(os.path.join("/proc", str(pid)))


def _posix_process_exists(pid: int) -> bool:
    # Systems without /proc: signal 0 only checks that the process exists.
    try:
        os.kill(pid, 0)
    except (OSError, OverflowError):
        return False
    return True


def _windows_process_exists(pid: int) -> bool:
    try:
        completed = subprocess.run(
            ["tasklist", "/FI", f"PID eq {pid}", "/NH", "/FO", "CSV"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return False
    return f'"{pid}"' in completed.stdout


def process_exists(pid):
    """Return whether a process with this PID is running."""
    if pid <= 0:
        return False
    if sys.platform.startswith("linux"):
        return _linux_process_exists(pid)
    if sys.platform == "win32":
        return _windows_process_exists(pid)
    return _posix_process_exists(pid)


@dataclass
class PIDFile:
    """A PID file written for the current process."""

    path: str

    def check(self):
        """Raise PIDFileError if the file names a running process.

        A missing or unreadable file, or one that holds no number, passes.
        """
        try:
            text = Path(self.path).read_text()
        except (OSError, UnicodeDecodeError):
            return None
        content = text.strip()
        if not _PID_RE.fullmatch(content):
            return None
        pid = int(content)
        if process_exists(pid):
            raise PIDFileError(
                f"pid file({self.path}) found, ensure {DEFAULT_PROG}({pid}) is not running",
                pid=pid,
            )
        return None

    def remove(self):
        """Delete the PID file."""
        os.remove(self.path)


def new_pid_file(pidfile):
    """Write the current PID to ``pidfile`` and return the PIDFile.

    A directory gets the default file name inside it; a symbolic link at
    the path is replaced rather than followed.
    """
    if not pidfile:
        raise PIDFileError("pid file is empty")
    path = os.fspath(pidfile)

    try:
        info = os.stat(path)
    except FileNotFoundError:
        parent = os.path.dirname(path) or "."
        try:
            os.makedirs(parent, mode=0o755, exist_ok=True)
        except OSError as err:
            raise PIDFileError(f"cannot create directory {parent}: {err}") from err
    except OSError as err:
        raise PIDFileError(f"cannot access pid file {path}: {err}") from err
    else:
        if stat.S_ISDIR(info.st_mode):
            path = os.path.join(path, DEFAULT_PID_FILE)
        if os.path.islink(path):
            os.remove(path)

    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as handle:
            handle.write(str(os.getpid()))
    except OSError as err:
        raise PIDFileError(f"cannot write pid file {path}: {err}") from err

    return PIDFile(path=path)