"""Channels carry probe results from probers to the notifiers that report them.

A result is any object with ``name``, ``endpoint``, ``status`` and
``pre_status`` attributes, and optionally a ``notification_strategy`` that
has ``reset()`` and ``need_to_send_notification()``. Probers and notifiers
are objects with ``name`` and ``kind`` attributes; notifiers also have
``notify(result)`` and ``dry_notify(result)``.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

log = logging.getLogger(__name__)

KIND = "channel"

_DONE = object()


class Status(Enum):
    """The status of a probed service."""

    INIT = "init"
    UP = "up"
    DOWN = "down"
    UNKNOWN = "unknown"
    BAD = "bad"

    def __str__(self) -> str:
        return self.value


@dataclass(eq=False)
class Channel:
    """A named route from a set of probers to a set of notifiers."""

    name: str
    probers: dict = field(default_factory=dict)
    notifiers: dict = field(default_factory=dict)
    _queue: Any = field(default=None, init=False, repr=False)
    _lock: Any = field(default_factory=threading.Lock, init=False, repr=False)
    _watching: bool = field(default=False, init=False, repr=False)

    # When set, notifiers are called with dry_notify in the watching thread.
    dry_notify: ClassVar[bool] = False

    @property
    def configured(self) -> bool:
        """Whether config() has been called."""
        return self._queue is not None

    @property
    def watching(self) -> bool:
        """Whether a watch_event loop is running."""
        with self._lock:
            return self._watching

    def config(self):
        """Create the queue that results are sent through."""
        self._queue = queue.Queue()

    def send(self, result):
        """Queue a result for the watching loop."""
        if self._queue is None:
            raise RuntimeError(f"channel {self.name!r} is not configured")
        self._queue.put(result)

    def stop(self):
        """Ask the watching loop to finish once queued results are handled."""
        if self._queue is None:
            raise RuntimeError(f"channel {self.name!r} is not configured")
        self._queue.put(_DONE)

    def get_prober(self, name):
        """Return the prober of that name, or None."""
        return self.probers.get(name)

    def set_probers(self, probers):
        """Add each prober; duplicates and None are skipped."""
        for prober in probers:
            self.set_prober(prober)

    def set_prober(self, prober):
        """Add a prober unless its name is taken; return whether it was added."""
        if prober is None:
            return False
        if prober.name in self.probers:
            log.error("Prober [%s - %s] name is duplicated, ignored!", prober.kind, prober.name)
            return False
        self.probers[prober.name] = prober
        return True

    def get_notify(self, name):
        """Return the notifier of that name, or None."""
        return self.notifiers.get(name)

    def set_notifiers(self, notifiers):
        """Add each notifier; duplicates and None are skipped."""
        for notifier in notifiers:
            self.set_notify(notifier)

    def set_notify(self, notifier):
        """Add a notifier unless its name is taken; return whether it was added."""
        if notifier is None:
            return False
        if notifier.name in self.notifiers:
            log.error(
                "Notifier [%s - %s] name is duplicated, ignored!", notifier.kind, notifier.name
            )
            return False
        self.notifiers[notifier.name] = notifier
        return True

    def watch_event(self):
        """Hand queued results to the notifiers until stop() is called.

        Returns False at once if another loop is already watching, True when
        the loop ends after a stop.
        """
        if self._queue is None:
            raise RuntimeError(f"channel {self.name!r} is not configured")
        with self._lock:
            if self._watching:
                log.warning("[%s / %s]: Channel is already watching!", KIND, self.name)
                return False
            self._watching = True
            events = self._queue
        try:
            while True:
                item = events.get()
                if item is _DONE:
                    log.info(
                        "[%s / %s]: Received the done signal, channel exiting...", KIND, self.name
                    )
                    return True
                if self._should_notify(item):
                    self._dispatch(item)
        finally:
            with self._lock:
                self._watching = False

    def _should_notify(self, result) -> bool:
        pre, status = result.pre_status, result.status
        if pre == Status.INIT and status == Status.UP:
            log.debug(
                "[%s / %s]: %s (%s) - Initial Status [%s] == [%s], no notification.",
                KIND, self.name, result.name, result.endpoint, pre, status,
            )
            return False
        if pre == status and status in (Status.UP, Status.INIT):
            log.debug(
                "[%s / %s]: %s (%s) - Status no change [%s] == [%s], no notification.",
                KIND, self.name, result.name, result.endpoint, pre, status,
            )
            return False

        strategy = getattr(result, "notification_strategy", None)
        if status == Status.UP and strategy is not None:
            strategy.reset()
        if (
            status == Status.DOWN
            and strategy is not None
            and not strategy.need_to_send_notification()
        ):
            log.debug(
                "[%s / %s]: %s (%s) - Don't meet the notification condition, no notification.",
                KIND, self.name, result.name, result.endpoint,
            )
            return False

        if pre != status:
            log.info(
                "[%s / %s]: %s (%s) - Status changed [%s] ==> [%s], sending notification...",
                KIND, self.name, result.name, result.endpoint, pre, status,
            )
        else:
            log.debug(
                "[%s / %s]: %s (%s) - Meet the notification condition, sending notification...",
                KIND, self.name, result.name, result.endpoint,
            )
        return True

    def _dispatch(self, result):
        for notifier in list(self.notifiers.values()):
            if Channel.dry_notify:
                try:
                    notifier.dry_notify(result)
                except Exception:
                    log.exception("[%s / %s]: dry notification failed", KIND, self.name)
            else:
                threading.Thread(target=notifier.notify, args=(result,), daemon=True).start()