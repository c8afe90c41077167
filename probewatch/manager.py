"""The registry of channels and the operations over all of them."""

from __future__ import annotations

import threading

from .channel import Channel

_channels: dict[str, Channel] = {}
_threads: list[threading.Thread] = []
_threads_lock = threading.Lock()


def set_dry_notify(dry):
    """Set whether notifications are only dry-run."""
    Channel.dry_notify = bool(dry)


def is_dry_notify():
    """Return whether notifications are only dry-run."""
    return Channel.dry_notify


def get_all_channels():
    """Return the registry of channels by name."""
    return _channels


def get_channel(name):
    """Return the channel of that name, or None."""
    return _channels.get(name)


def set_channel(name):
    """Return the channel of that name, creating it if needed."""
    ch = _channels.get(name)
    if ch is None:
        ch = _channels[name] = Channel(name)
    return ch


def set_probers(probers):
    """Add each prober to every channel it names."""
    for prober in probers:
        for name in prober.channels:
            set_prober(name, prober)


def set_prober(channel, prober):
    """Add a prober to the named channel, creating the channel if needed."""
    set_channel(channel).set_prober(prober)


def set_notifiers(notifiers):
    """Add each notifier to every channel it names."""
    for notifier in notifiers:
        for name in notifier.channels:
            set_notify(name, notifier)


def set_notify(channel, notifier):
    """Add a notifier to the named channel, creating the channel if needed."""
    set_channel(channel).set_notify(notifier)


def get_notifiers(channels):
    """Return the notifiers of the named channels, by notifier name."""
    notifiers = {}
    for name in channels:
        ch = _channels.get(name)
        if ch is None:
            continue
        for notifier in ch.notifiers.values():
            notifiers[notifier.name] = notifier
    return notifiers


def config_all_channels():
    """Configure every channel."""
    for ch in _channels.values():
        ch.config()


def watch_for_all_events():
    """Start a watching thread for every channel."""
    with _threads_lock:
        for ch in _channels.values():
            thread = threading.Thread(
                target=ch.watch_event, name=f"channel-{ch.name}", daemon=True
            )
            thread.start()
            _threads.append(thread)


def all_done():
    """Stop every configured channel and wait for the watching threads."""
    for ch in _channels.values():
        if ch.configured:
            ch.stop()
    with _threads_lock:
        threads = list(_threads)
        _threads.clear()
    for thread in threads:
        thread.join()