"""Privilege checks, interactive elevation and the Windows long-path switch.

Nothing in this module raises: a failed elevation, a missing registry value
or a write that does not stick is logged and reported as ``False``.
"""

from __future__ import annotations

import ctypes
import logging
import os
from typing import Callable, Optional

from . import platform_utils
from .logging_utils import print_success
from .versions import split_version, windows_version

logger = logging.getLogger(__name__)

FILESYSTEM_KEY = r"SYSTEM\CurrentControlSet\Control\FileSystem"
LONG_PATHS_VALUE = "LongPathsEnabled"

# Windows 10 "Anniversary Update" (build 14352) introduced the setting.
MIN_WINDOWS_MAJOR = 10
MIN_WINDOWS_BUILD = 14352

REG_ADD_LONG_PATHS = (
    r"ADD HKEY_LOCAL_MACHINE\SYSTEM\CurrentControlSet\Control\FileSystem "
    r"/v LongPathsEnabled /d 1 /t REG_DWORD /f"
)

SEE_MASK_NOCLOSEPROCESS = 0x00000040
SEE_MASK_NOASYNC = 0x00000100
SW_HIDE = 0
INFINITE = 0xFFFFFFFF


def is_admin() -> bool:
    """Return ``True`` when the process runs with elevated privileges."""

    if platform_utils.is_windows():
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
        except (AttributeError, OSError):
            return False
    return os.geteuid() == 0 or os.getegid() == 0


def _shell_execute_runas(exe: str, args: str) -> Optional[int]:
    """Start *exe* elevated through the shell and wait for it.

    Returns the child's exit code, or ``None`` if it could not be started.
    """

    from ctypes import wintypes

    class SHELLEXECUTEINFOW(ctypes.Structure):
        _fields_ = [
            ("cbSize", wintypes.DWORD),
            ("fMask", wintypes.ULONG),
            ("hwnd", wintypes.HWND),
            ("lpVerb", wintypes.LPCWSTR),
            ("lpFile", wintypes.LPCWSTR),
            ("lpParameters", wintypes.LPCWSTR),
            ("lpDirectory", wintypes.LPCWSTR),
            ("nShow", ctypes.c_int),
            ("hInstApp", wintypes.HINSTANCE),
            ("lpIDList", ctypes.c_void_p),
            ("lpClass", wintypes.LPCWSTR),
            ("hkeyClass", wintypes.HKEY),
            ("dwHotKey", wintypes.DWORD),
            ("hIconOrMonitor", wintypes.HANDLE),
            ("hProcess", wintypes.HANDLE),
        ]

    shell32 = ctypes.WinDLL("shell32", use_last_error=True)  # type: ignore[attr-defined]
    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)  # type: ignore[attr-defined]

    info = SHELLEXECUTEINFOW()
    info.cbSize = ctypes.sizeof(info)
    info.fMask = SEE_MASK_NOCLOSEPROCESS | SEE_MASK_NOASYNC
    info.lpVerb = "runas"
    info.lpFile = exe
    info.lpParameters = args
    info.lpDirectory = None
    info.nShow = SW_HIDE

    if not shell32.ShellExecuteExW(ctypes.byref(info)) or not info.hProcess:
        return None

    exit_code = wintypes.DWORD(0)
    try:
        kernel32.WaitForSingleObject(info.hProcess, INFINITE)
        kernel32.GetExitCodeProcess(info.hProcess, ctypes.byref(exit_code))
    finally:
        kernel32.CloseHandle(info.hProcess)
    return exit_code.value


def run_as_admin(
    exe: str,
    args: str,
    *,
    launcher: Callable[[str, str], Optional[int]] | None = None,
) -> bool:
    """Run ``exe args`` with elevated privileges and wait for it to finish.

    The user is asked for consent by the operating system.  ``True`` is
    returned only when the elevated process exits with code 0.
    """

    if launcher is None:
        if not platform_utils.is_windows():
            logger.warning("Running a process as admin is only supported on Windows.")
            return False
        launcher = _shell_execute_runas

    try:
        exit_code = launcher(exe, args)
    except OSError as exc:
        logger.warning("Could not start process as admin: %s", exc)
        return False
    if exit_code is None:
        logger.warning("Could not start process as admin.")
        return False
    if exit_code != 0:
        logger.warning("Process exited with code != 0.")
        return False
    return True


class LongPathsRegistry:
    """Access to ``HKLM\\...\\FileSystem\\LongPathsEnabled``."""

    def read(self) -> int:
        import winreg

        with winreg.OpenKey(
            winreg.HKEY_LOCAL_MACHINE, FILESYSTEM_KEY, 0, winreg.KEY_QUERY_VALUE
        ) as key:
            value, _ = winreg.QueryValueEx(key, LONG_PATHS_VALUE)
        return int(value)

    def write(self, value: int) -> None:
        import winreg

        with winreg.OpenKey(
            winreg.HKEY_LOCAL_MACHINE, FILESYSTEM_KEY, 0, winreg.KEY_SET_VALUE
        ) as key:
            winreg.SetValueEx(key, LONG_PATHS_VALUE, 0, winreg.REG_DWORD, value)


def _ask(question: str) -> bool:
    try:
        answer = input(f"{question} [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def _supports_long_paths(version: str) -> bool:
    parsed = split_version(version)
    if parsed is None:
        return False
    major, _, build = parsed.to_ints()
    return major >= MIN_WINDOWS_MAJOR and build >= MIN_WINDOWS_BUILD


def enable_long_paths_support(
    force: bool = False,
    *,
    confirm: Callable[[str], bool] | None = None,
    registry: LongPathsRegistry | None = None,
    elevate: Callable[[str, str], bool] | None = None,
) -> bool:
    """Turn on Windows long-path support system wide.

    The setting only exists from Windows 10 build 14352 onwards.  It is written
    directly when ``force`` is set or the process is already elevated;
    otherwise the user is asked whether to run ``reg.exe`` as admin.  The value
    is read back afterwards and ``True`` is returned only if it is now ``1``.
    """

    if not _supports_long_paths(windows_version()):
        logger.warning(
            "Not setting long path registry key; Windows version must be at least 10 "
            'with the fall 2016 "Anniversary update" or newer.'
        )
        return False

    if registry is None:
        if not platform_utils.is_windows():
            logger.info("Long path support can only be changed on Windows.")
            return False
        registry = LongPathsRegistry()

    try:
        prev_value = registry.read()
    except (OSError, ValueError, TypeError):
        logger.info("No LongPathsEnabled key detected.")
        return False

    if prev_value == 1:
        print_success("Windows long-path support already enabled.")
        return True

    if force or is_admin():
        try:
            registry.write(1)
        except OSError as exc:
            logger.warning("Could not write LongPathsEnabled: %s", exc)
    else:
        ask = confirm or _ask
        if not ask("Enter admin mode to enable long paths support?"):
            logger.warning("Did not enable long paths support.")
            return False
        if not (elevate or run_as_admin)("reg.exe", REG_ADD_LONG_PATHS):
            return False

    try:
        prev_value = registry.read()
    except (OSError, ValueError, TypeError):
        prev_value = None
    if prev_value == 1:
        print_success("Windows long-path support enabled.")
        return True
    logger.warning("Changing registry value did not succeed.")
    return False


__all__ = [
    "is_admin",
    "run_as_admin",
    "enable_long_paths_support",
    "LongPathsRegistry",
]
