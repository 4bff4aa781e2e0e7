"""Exceptions raised by :mod:`hostprobe`.

Only these two failures ever leave the package; every other problem is
logged and turned into an empty string, ``"0.0.0"``, ``0`` or ``False``.
"""

from __future__ import annotations


class HostProbeError(RuntimeError):
    """Base class for fatal probe failures."""


class ExecutablePathError(HostProbeError):
    """The location of the running executable could not be determined."""


class EncodingConversionError(HostProbeError):
    """Wide text could not be converted to UTF-8."""
