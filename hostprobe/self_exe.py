"""Locate the binary of the running process.

Each OS family asks the operating system directly rather than trusting
``sys.argv[0]``:

* Windows: ``GetModuleFileNameW`` with a buffer that keeps doubling while the
  path fills it completely.
* macOS: ``_NSGetExecutablePath`` with one retry using the size it reports.
* Linux and other POSIX systems: the ``/proc/self/exe`` symlink
  (``/proc/self/path/a.out`` on SunOS).

Failure to resolve the path raises :class:`~hostprobe.errors.ExecutablePathError`;
callers cannot continue without it.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
from pathlib import Path
from typing import Callable, Dict

from . import platform_utils
from .errors import ExecutablePathError

logger = logging.getLogger(__name__)

MAX_PATH = 260
PATH_MAX = 1024

PROC_SELF_EXE = "/proc/self/exe"
PROC_SELF_AOUT = "/proc/self/path/a.out"


def _windows_self_exe() -> str:
    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)  # type: ignore[attr-defined]
    capacity = MAX_PATH
    while True:
        buffer = ctypes.create_unicode_buffer(capacity)
        size = kernel32.GetModuleFileNameW(None, buffer, capacity)
        if size == 0:
            raise ExecutablePathError(
                f"GetModuleFileNameW failed (error {ctypes.get_last_error()})"  # type: ignore[attr-defined]
            )
        if size < capacity:
            return buffer.value
        capacity *= 2


def _macos_self_exe() -> str:
    libc = ctypes.CDLL(ctypes.util.find_library("c"))
    size = ctypes.c_uint32(PATH_MAX)
    buffer = ctypes.create_string_buffer(size.value)
    if libc._NSGetExecutablePath(buffer, ctypes.byref(size)) != 0:
        # size now holds the required capacity
        buffer = ctypes.create_string_buffer(size.value)
        if libc._NSGetExecutablePath(buffer, ctypes.byref(size)) != 0:
            raise ExecutablePathError("_NSGetExecutablePath failed")
    return os.fsdecode(buffer.value)


def _posix_self_exe() -> str:
    link = PROC_SELF_AOUT if platform_utils.is_sunos() else PROC_SELF_EXE
    try:
        return os.readlink(link)
    except OSError as exc:
        raise ExecutablePathError(f"Could not read {link}: {exc}") from exc


RESOLVERS: Dict[str, Callable[[], str]] = {
    platform_utils.WINDOWS: _windows_self_exe,
    platform_utils.MACOS: _macos_self_exe,
    platform_utils.LINUX: _posix_self_exe,
}


def get_self_exe_path(resolver: Callable[[], str] | None = None) -> Path:
    """Return the absolute path of the running executable.

    ``resolver`` replaces the native lookup for the current OS family.

    Raises
    ------
    ExecutablePathError
        If the operating system cannot report a usable path.
    """

    resolve = resolver or RESOLVERS[platform_utils.family()]
    try:
        raw = resolve()
    except ExecutablePathError:
        logger.error("Could not find location of the running executable")
        raise
    except (OSError, AttributeError) as exc:
        logger.error("Could not find location of the running executable: %s", exc)
        raise ExecutablePathError(str(exc)) from exc
    if not raw:
        raise ExecutablePathError("The operating system returned an empty executable path")
    return Path(raw).absolute()


__all__ = ["get_self_exe_path", "RESOLVERS"]
