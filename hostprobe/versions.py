"""Operating-system version probes.

Each probe returns a plain string in one of four states:

* the override from the family's ``CONDA_OVERRIDE_*`` variable, verbatim;
* a resolved ``major.minor.patch`` version;
* ``""`` when the host is not of that family or the version is unknown;
* :data:`VERSION_SENTINEL` (``"0.0.0"``) when ``ver`` ran on Windows but its
  output could not be parsed.

The grammars are pure functions so they can be exercised without running any
command.  Nothing is cached: every call probes again unless an override is set.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Mapping, NamedTuple, Optional

from . import platform_utils
from .commands import Runner, run_command
from .config import override_for

logger = logging.getLogger(__name__)

VERSION_SENTINEL = "0.0.0"

_WINDOWS_VER_RE = re.compile(r"([\w ]+) ([\w.]+) .*\[.* ([\d.]+)\]")
_LINUX_RELEASE_RE = re.compile(r"([0-9]+\.[0-9]+\.[0-9]+)-")


class ParsedVersion(NamedTuple):
    """The first three components of a dotted version, as digit strings."""

    major: str
    minor: str
    patch: str

    def __str__(self) -> str:
        return ".".join(self)

    def to_ints(self) -> tuple[int, int, int]:
        return int(self.major), int(self.minor), int(self.patch)


def split_version(text: str) -> Optional[ParsedVersion]:
    """Return the first three numeric components of *text*.

    ``None`` is returned when fewer than three components are present or
    one of them is not made of digits.
    """

    parts = text.strip().split(".")
    if len(parts) < 3:
        return None
    head = parts[:3]
    if not all(p.isdigit() for p in head):
        return None
    return ParsedVersion(*head)


def parse_windows_ver(text: str) -> Optional[ParsedVersion]:
    """Parse the output of ``cmd /c ver``.

    >>> str(parse_windows_ver("Microsoft Windows [Version 10.0.19045.3803]"))
    '10.0.19045'
    """

    match = _WINDOWS_VER_RE.fullmatch(text.strip())
    if match is None:
        return None
    return split_version(match.group(3))


def parse_macos_version(text: str) -> str:
    """Return the output of ``sw_vers -productVersion`` trimmed."""

    return text.strip()


def parse_linux_release(text: str) -> Optional[ParsedVersion]:
    """Parse the output of ``uname -r``.

    Only releases carrying a ``-<suffix>`` are recognised; ``"5.15.0"`` on its
    own yields ``None``.
    """

    match = _LINUX_RELEASE_RE.search(text)
    if match is None:
        return None
    return split_version(match.group(1))


def windows_version(
    *, runner: Runner | None = None, environ: Mapping[str, str] | None = None
) -> str:
    logger.debug("Loading Windows virtual package")
    override = override_for(platform_utils.WINDOWS, environ)
    if override:
        return override

    if not platform_utils.is_windows():
        return ""

    env = os.environ if environ is None else environ
    comspec = env.get("COMSPEC") or "cmd.exe"
    result = run_command([comspec, "/c", "ver"], runner)
    if not result.launched:
        logger.warning(
            "Could not find Windows version by calling 'ver'\n"
            "Please file a bug report.\nError: %s",
            result.error,
        )
        return ""

    parsed = parse_windows_ver(result.stdout)
    if parsed is None:
        logger.debug("Windows version not found")
        return VERSION_SENTINEL
    version = str(parsed)
    logger.debug("Windows version found: %s", version)
    return version


def macos_version(
    *, runner: Runner | None = None, environ: Mapping[str, str] | None = None
) -> str:
    logger.debug("Loading macos virtual package")
    override = override_for(platform_utils.MACOS, environ)
    if override:
        return override

    if not platform_utils.is_macos():
        return ""

    # /System/Library/CoreServices/SystemVersion.plist holds the same value
    result = run_command(["sw_vers", "-productVersion"], runner)
    if not result.launched:
        logger.warning(
            "Could not find macOS version by calling 'sw_vers -productVersion'\n"
            "Please file a bug report.\nError: %s",
            result.error,
        )
        return ""

    version = parse_macos_version(result.stdout)
    logger.debug("macos version found: %s", version)
    return version


def linux_version(
    *, runner: Runner | None = None, environ: Mapping[str, str] | None = None
) -> str:
    logger.debug("Loading linux virtual package")
    override = override_for(platform_utils.LINUX, environ)
    if override:
        return override

    if not platform_utils.is_linux():
        return ""

    result = run_command(["uname", "-r"], runner)
    if not result.launched:
        logger.debug("Could not find linux version by calling 'uname -r' (skipped)")
        return ""

    parsed = parse_linux_release(result.stdout)
    if parsed is None:
        return ""
    version = str(parsed)
    logger.debug("linux version found: %s", version)
    return version


__all__ = [
    "VERSION_SENTINEL",
    "ParsedVersion",
    "split_version",
    "parse_windows_ver",
    "parse_macos_version",
    "parse_linux_release",
    "windows_version",
    "macos_version",
    "linux_version",
]
