"""Log settings: level, destination file and rotation."""

from __future__ import annotations

import glob
import gzip
import logging
import os
import shutil
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import yaml

DEFAULT_MAX_LOG_SIZE = 10
DEFAULT_MAX_LOG_AGE = 7
DEFAULT_MAX_BACKUPS = 5

_FORMAT = "%(asctime)s level=%(levelname)s msg=%(message)r"

log = logging.getLogger(__name__)


class LogLevel(Enum):
    """Log levels, by severity from panic down to debug."""

    PANIC = 0
    FATAL = 1
    ERROR = 2
    WARN = 3
    INFO = 4
    DEBUG = 5

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def python_level(self) -> int:
        """The matching level of the logging module."""
        return _PYTHON_LEVELS[self]

    def to_yaml(self):
        """Return the YAML document for this level."""
        return f"{self}\n"

    @classmethod
    def from_yaml(cls, text):
        """Read a level from a YAML document holding its name."""
        try:
            value = yaml.safe_load(text)
        except yaml.YAMLError as err:
            raise ValueError(f"invalid LogLevel YAML: {err}") from err
        for member in cls:
            if isinstance(value, str) and str(member) == value:
                return member
        raise ValueError(f"invalid LogLevel: {value!r}")


_PYTHON_LEVELS = {
    LogLevel.PANIC: logging.CRITICAL,
    LogLevel.FATAL: logging.CRITICAL,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


class _RotatingFile:
    """A text log file that rotates by size and prunes its backups."""

    def __init__(self, path, max_size, max_backups, max_age, compress):
        self.path = path
        self.max_bytes = max_size * 1024 * 1024
        self.max_backups = max_backups
        self.max_age = max_age
        self.compress = compress
        self._file = open(path, "a", encoding="utf-8")

    @property
    def name(self):
        return self.path

    def write(self, text):
        size = self._file.tell()
        if self.max_bytes > 0 and size > 0 and size + len(text.encode("utf-8")) > self.max_bytes:
            self.rotate()
        return self._file.write(text)

    def flush(self):
        if not self._file.closed:
            self._file.flush()

    def close(self):
        self._file.close()

    def _backup_name(self):
        stem, ext = os.path.splitext(self.path)
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S.%f")[:-3]
        candidate = f"{stem}-{stamp}{ext}"
        counter = 1
        while os.path.exists(candidate) or os.path.exists(candidate + ".gz"):
            candidate = f"{stem}-{stamp}.{counter}{ext}"
            counter += 1
        return candidate

    def rotate(self):
        """Move the current file aside and start a new one."""
        self._file.close()
        if os.path.exists(self.path):
            os.replace(self.path, self._backup_name())
        self._file = open(self.path, "a", encoding="utf-8")
        self._prune()

    def _prune(self):
        stem, ext = os.path.splitext(self.path)
        pattern = glob.escape(stem) + "-*" + glob.escape(ext)
        backups = glob.glob(pattern) + glob.glob(pattern + ".gz")
        backups.sort(key=os.path.getmtime, reverse=True)
        cutoff = time.time() - self.max_age * 86400
        for index, backup in enumerate(backups):
            too_many = self.max_backups > 0 and index >= self.max_backups
            too_old = self.max_age > 0 and os.path.getmtime(backup) < cutoff
            if too_many or too_old:
                os.remove(backup)
            elif self.compress and not backup.endswith(".gz"):
                with open(backup, "rb") as src, gzip.open(backup + ".gz", "wb") as dst:
                    shutil.copyfileobj(src, dst)
                os.remove(backup)


def _make_directory(path: str) -> str:
    path = os.path.expanduser(path)
    parent = os.path.dirname(path)
    if parent:
        try:
            os.makedirs(parent, mode=0o755, exist_ok=True)
        except OSError as err:
            log.warning("[Log] Cannot create directory %s: %s", parent, err)
    return path


@dataclass
class Log:
    """Where and how a logger writes."""

    level: LogLevel = LogLevel.INFO
    file: str = ""
    self_rotate: bool = True
    max_size: int = DEFAULT_MAX_LOG_SIZE
    max_age: int = DEFAULT_MAX_LOG_AGE
    max_backups: int = DEFAULT_MAX_BACKUPS
    compress: bool = True
    writer: Any = field(default=None, repr=False)
    logger: logging.Logger | None = field(default=None, repr=False)
    is_stdout: bool = True
    _handler: logging.Handler | None = field(default=None, repr=False, compare=False)

    def init_log(self, logger):
        """Open the destination and attach it to ``logger`` (root if None)."""
        self.logger = logger
        self.check_default()
        if self.file:
            self.file = _make_directory(self.file)
        self.open()
        self.configure_logger()

    def check_default(self):
        """Replace unset sizes, ages, backups and level with defaults."""
        if self.max_age == 0:
            self.max_age = DEFAULT_MAX_LOG_AGE
        if self.max_size == 0:
            self.max_size = DEFAULT_MAX_LOG_SIZE
        if self.max_backups == 0:
            self.max_backups = DEFAULT_MAX_BACKUPS
        if self.level == LogLevel.PANIC:
            self.level = LogLevel.INFO

    def _use_stdout(self):
        self.is_stdout = True
        self.writer = sys.stdout

    def open(self):
        """Open the log file, or fall back to standard output."""
        if not self.file:
            self._use_stdout()
            return
        if self.self_rotate:
            log.debug("[Log] Self Rotate log file %s", self.file)
            try:
                self.writer = _RotatingFile(
                    self.file, self.max_size, self.max_backups, self.max_age, self.compress
                )
            except OSError as err:
                log.warning("[Log] Cannot open log file: %s", err)
                log.info("[Log] Using Standard Output as the log output...")
                self._use_stdout()
                return
            self.is_stdout = False
            return
        try:
            fd = os.open(self.file, os.O_APPEND | os.O_CREAT | os.O_RDWR, 0o640)
            self.writer = os.fdopen(fd, "a", encoding="utf-8")
        except OSError as err:
            log.warning("[Log] Cannot open log file: %s", err)
            log.info("[Log] Using Standard Output as the log output...")
            self._use_stdout()
            return
        self.is_stdout = False

    def close(self):
        """Close the log file; standard output is left open."""
        if self.writer is None or self.is_stdout:
            return
        self._detach()
        self.writer.close()

    def get_writer(self):
        """Return the writer, opening it first if needed."""
        if self.writer is None:
            self.open()
        return self.writer

    def rotate(self):
        """Rotate a self-rotated file, or reopen a file rotated outside."""
        if self.writer is None or self.is_stdout:
            return
        if isinstance(self.writer, _RotatingFile):
            try:
                self.writer.rotate()
            except OSError as err:
                log.error("[Log] Rotate log file failed: %s", err)
            return
        self._detach()
        try:
            self.writer.close()
        except OSError as err:
            log.error("[Log] Close log file failed: %s", err)
        self.open()
        self.configure_logger()

    def _target(self) -> logging.Logger:
        return self.logger if self.logger is not None else logging.getLogger()

    def _detach(self):
        if self._handler is not None:
            self._target().removeHandler(self._handler)
            self._handler = None

    def configure_logger(self):
        """Send the logger's output to the writer at the configured level."""
        self._detach()
        handler = logging.StreamHandler(self.writer)
        handler.setFormatter(logging.Formatter(_FORMAT))
        target = self._target()
        target.addHandler(handler)
        target.setLevel(self.level.python_level)
        self._handler = handler

    def log_info(self, name):
        """Log and return a line describing where this log goes."""
        rotate = "Self-Rotate" if self.self_rotate else "Third-Party Rotate (e.g. logrotate)"
        if self.file:
            message = f"{name} Log File [{self.file}] - {rotate}"
        else:
            message = f"{name} Log File [Stdout] - {rotate} "
        log.info(message)
        return message