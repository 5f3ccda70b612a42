from __future__ import annotations


class BloomdError(Exception):
    """Base class for every error raised by bloomd."""


class ConfigurationError(BloomdError, ValueError):
    """Invalid filter geometry: raised before any filter is built."""


class LockPoisonedError(BloomdError, RuntimeError):
    """
    The shared filter lock is unusable because a writer failed while holding it.

    The bits may be in a state no caller asked for, so every later acquisition
    reports this instead of answering from them.
    """
