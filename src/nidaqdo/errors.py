"""Exception classes raised by nidaqdo.

Each class also derives from the builtin exception callers would already
catch for that kind of failure, so ``except ValueError`` around task
creation keeps working.  Driver ``DaqError`` instances are always chained
(``raise ... from exc``) so the NI error code stays reachable through
``__cause__``.
"""

from __future__ import annotations


class NIDAQDOError(Exception):
    """Base class for all nidaqdo errors."""


class ConfigurationError(NIDAQDOError, ValueError):
    """Channel or timing configuration is malformed.

    Raised at task-creation time, before any sample is written: empty
    channel set, malformed line specifier, duplicate channel name, or a
    driver rejection while adding a channel.
    """


class VerificationError(NIDAQDOError, RuntimeError):
    """The driver rejected the assembled task during verification."""


class UnsupportedFormatError(NIDAQDOError, TypeError):
    """A sample cannot be written by the session's writer mode.

    Raised before any driver call for that sample.
    """


class DeviceWriteError(NIDAQDOError, RuntimeError):
    """A driver write call failed.  The task has been stopped."""
