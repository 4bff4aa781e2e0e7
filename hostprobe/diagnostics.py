from __future__ import annotations

import os
import platform

from . import privileges, process, self_exe, versions
from .errors import ExecutablePathError


def collect() -> dict[str, str]:
    info: dict[str, str] = {}
    info["platform"] = platform.system() or "unknown"
    info["windows_version"] = versions.windows_version() or "n/a"
    info["macos_version"] = versions.macos_version() or "n/a"
    info["linux_version"] = versions.linux_version() or "n/a"

    try:
        info["self_exe"] = str(self_exe.get_self_exe_path())
    except ExecutablePathError:
        info["self_exe"] = "error"

    info["admin"] = "yes" if privileges.is_admin() else "no"

    pid = os.getpid()
    info["pid"] = str(pid)
    info["parent_pid"] = str(process.parent_pid())
    info["process_name"] = process.process_name(pid) or "unknown"
    return info


def main() -> int:
    info = collect()
    for key, val in info.items():
        print(f"{key}: {val}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
