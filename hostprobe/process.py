"""Read-only inspection of processes by pid."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import psutil

from . import platform_utils

logger = logging.getLogger(__name__)

PROC_ROOT = Path("/proc")


@dataclass(frozen=True)
class ProcessIdentity:
    """A pid together with whatever the OS could tell about it."""

    pid: int
    parent_pid: Optional[int] = None
    name: Optional[str] = None


def parent_pid() -> int:
    """Return the parent pid of the current process, or ``0`` if unknown.

    The system-wide process table is walked looking for our own entry so the
    answer comes from the same snapshot on every platform.
    """

    pid = os.getpid()
    try:
        for proc in psutil.process_iter(["pid", "ppid"]):
            info = proc.info
            if info.get("pid") == pid:
                return int(info.get("ppid") or 0)
    except (psutil.Error, OSError) as exc:
        logger.debug("Process enumeration failed: %s", exc)
    return 0


def _name_from_image(pid: int) -> str:
    # psutil opens the process with PROCESS_QUERY_LIMITED_INFORMATION
    return psutil.Process(pid).exe()


def _name_from_proc_name(pid: int) -> str:
    return psutil.Process(pid).name()


def _name_from_status(pid: int) -> str:
    status = PROC_ROOT / str(pid) / "status"
    with open(status, "r", encoding="utf-8", errors="replace") as fh:
        return fh.readline()


_NAME_LOOKUPS = {
    platform_utils.WINDOWS: _name_from_image,
    platform_utils.MACOS: _name_from_proc_name,
    platform_utils.LINUX: _name_from_status,
}


def process_name(pid: int) -> str:
    """Return a display name for *pid*, or ``""`` when it cannot be read.

    On Windows this is the full image path, on macOS the process name and on
    Linux the first line of ``/proc/<pid>/status``.  Invalid pids, exited
    processes and missing permissions are logged and never raised.
    """

    lookup = _NAME_LOOKUPS[platform_utils.family()]
    try:
        return (lookup(pid) or "").strip()
    except (psutil.Error, OSError, ValueError) as exc:
        logger.debug("Could not query process %s: %s", pid, exc)
        return ""


def _parent_of(pid: int) -> Optional[int]:
    if pid == os.getpid():
        ppid = parent_pid()
        return ppid or None
    try:
        return psutil.Process(pid).ppid()
    except (psutil.Error, OSError, ValueError) as exc:
        logger.debug("Could not query parent of %s: %s", pid, exc)
        return None


def identify(pid: int | None = None) -> ProcessIdentity:
    """Return the :class:`ProcessIdentity` of *pid* (default: this process)."""

    if pid is None:
        pid = os.getpid()
    name = process_name(pid)
    return ProcessIdentity(pid=pid, parent_pid=_parent_of(pid), name=name or None)


__all__ = ["ProcessIdentity", "parent_pid", "process_name", "identify"]
