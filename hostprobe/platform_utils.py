"""Cross-platform helpers for operating-system family detection.

This module centralizes detection of the current operating system so the
probes never call :func:`platform.system` or inspect :data:`sys.platform`
directly.  Three families are recognised: ``"windows"`` (Family A),
``"macos"`` (Family B) and ``"linux"`` (Family C, which also covers the other
POSIX systems for the purposes of backend selection).
"""

from __future__ import annotations

import platform

WINDOWS = "windows"
MACOS = "macos"
LINUX = "linux"


def system() -> str:
    """Return the current operating system name.

    This is a thin wrapper around :func:`platform.system` which allows tests to
    monkeypatch the value without touching the global :mod:`platform` module.
    """

    return platform.system()


def family() -> str:
    """Return the OS family the process is running on.

    Unknown POSIX systems (the BSDs, SunOS, ...) are reported as ``"linux"``
    since they share the POSIX backends.
    """

    name = system()
    if name == "Windows":
        return WINDOWS
    if name == "Darwin":
        return MACOS
    return LINUX


def is_windows() -> bool:
    """Return ``True`` if running on Windows."""

    return system() == "Windows"


def is_macos() -> bool:
    """Return ``True`` if running on macOS."""

    return system() == "Darwin"


def is_linux() -> bool:
    """Return ``True`` if running on Linux proper."""

    return system() == "Linux"


def is_sunos() -> bool:
    return system() == "SunOS"
