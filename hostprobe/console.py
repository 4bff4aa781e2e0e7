"""Console text-encoding state.

On Windows the console has input and output code pages that survive the
process, so :meth:`ConsoleCodec.setup` records them before switching both to
UTF-8 and :meth:`ConsoleCodec.teardown` puts them back.  Elsewhere there is no
such state; ``setup`` selects the first UTF-8 locale the C library accepts and
``teardown`` leaves it in place.

``setup`` is meant to run once near process start and ``teardown`` once near
the end, from one thread.  The codec does no locking.
"""

from __future__ import annotations

import contextlib
import ctypes
import locale
import logging
import os
import sys
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol, Sequence, Tuple

from . import platform_utils
from .errors import EncodingConversionError

logger = logging.getLogger(__name__)

CP_UTF8 = 65001
UTF8_LOCALES: Tuple[str, ...] = ("C.UTF-8", "POSIX.UTF-8", "en_US.UTF-8")


@dataclass(frozen=True)
class ConsoleState:
    """Console code pages as found before :meth:`ConsoleCodec.setup`."""

    input_mode: int
    output_mode: int
    line_buffering: Optional[bool] = None


class ConsoleBackend(Protocol):
    mutable: bool

    def capture(self) -> Optional[ConsoleState]: ...

    def apply_utf8(self) -> None: ...

    def restore(self, state: ConsoleState) -> None: ...


class WindowsConsole:
    """Code pages of the attached Windows console."""

    mutable = True

    def __init__(self) -> None:
        self._kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)  # type: ignore[attr-defined]

    def capture(self) -> ConsoleState:
        return ConsoleState(
            int(self._kernel32.GetConsoleCP()),
            int(self._kernel32.GetConsoleOutputCP()),
            getattr(sys.stdout, "line_buffering", None),
        )

    def apply_utf8(self) -> None:
        self._kernel32.SetConsoleCP(CP_UTF8)
        self._kernel32.SetConsoleOutputCP(CP_UTF8)
        # block-buffer stdout so a multi-byte sequence is not split across writes
        reconfigure = getattr(sys.stdout, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(line_buffering=False, write_through=False)

    def restore(self, state: ConsoleState) -> None:
        self._kernel32.SetConsoleCP(state.input_mode)
        self._kernel32.SetConsoleOutputCP(state.output_mode)
        reconfigure = getattr(sys.stdout, "reconfigure", None)
        if reconfigure is not None and state.line_buffering is not None:
            reconfigure(line_buffering=state.line_buffering)


class PosixLocale:
    """Locale selection for systems without console code pages."""

    mutable = False

    def __init__(self, candidates: Sequence[str] = UTF8_LOCALES) -> None:
        self.candidates = tuple(candidates)
        self.selected: Optional[str] = None

    def capture(self) -> None:
        return None

    def apply_utf8(self) -> None:
        for name in self.candidates:
            try:
                locale.setlocale(locale.LC_ALL, name)
            except locale.Error:
                continue
            os.environ["LC_ALL"] = name
            self.selected = name
            logger.debug("Using locale %s", name)
            return
        logger.debug("No UTF-8 locale available; keeping the current one")

    def restore(self, state: ConsoleState) -> None:
        return None


class Utf8Converter(Protocol):
    def required_size(self, text: str) -> int: ...

    def convert(self, text: str, size: int) -> Tuple[bytes, int]: ...


class CodecConverter:
    """Conversion through Python's own UTF-8 codec."""

    def required_size(self, text: str) -> int:
        try:
            return len(text.encode("utf-8"))
        except UnicodeEncodeError:
            return 0

    def convert(self, text: str, size: int) -> Tuple[bytes, int]:
        data = text.encode("utf-8")[:size]
        return data, len(data)


class WideCharConverter:
    """Conversion through ``WideCharToMultiByte``."""

    def __init__(self) -> None:
        self._kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)  # type: ignore[attr-defined]

    def _wide(self, text: str):
        buffer = ctypes.create_unicode_buffer(text)
        return buffer, len(buffer) - 1

    def required_size(self, text: str) -> int:
        wide, units = self._wide(text)
        return int(
            self._kernel32.WideCharToMultiByte(CP_UTF8, 0, wide, units, None, 0, None, None)
        )

    def convert(self, text: str, size: int) -> Tuple[bytes, int]:
        wide, units = self._wide(text)
        out = ctypes.create_string_buffer(size)
        written = self._kernel32.WideCharToMultiByte(
            CP_UTF8, 0, wide, units, out, size, None, None
        )
        return out.raw[:written], int(written)


def _default_backend() -> ConsoleBackend:
    if platform_utils.is_windows():
        return WindowsConsole()
    return PosixLocale()


def _default_converter() -> Utf8Converter:
    if platform_utils.is_windows():
        return WideCharConverter()
    return CodecConverter()


class ConsoleCodec:
    """Owner of the console state saved by :meth:`setup`."""

    def __init__(
        self,
        backend: ConsoleBackend | None = None,
        converter: Utf8Converter | None = None,
    ) -> None:
        self.backend = backend or _default_backend()
        self.converter = converter
        self.saved: Optional[ConsoleState] = None

    @property
    def captured(self) -> bool:
        return self.saved is not None

    def setup(self) -> Optional[ConsoleState]:
        """Switch the console to UTF-8 and return the state it replaced."""

        if self.backend.mutable and self.saved is None:
            self.saved = self.backend.capture()
        self.backend.apply_utf8()
        return self.saved

    def teardown(self) -> None:
        """Restore the state captured by :meth:`setup`, if any."""

        if self.backend.mutable and self.saved is not None:
            self.backend.restore(self.saved)

    def to_utf8(self, text: str) -> bytes:
        """Convert native wide *text* to UTF-8 bytes.

        Raises
        ------
        EncodingConversionError
            If the converter reports that non-empty *text* needs zero bytes.
        """

        if not text:
            return b""
        converter = self.converter
        if converter is None:
            converter = self.converter = _default_converter()
        size = converter.required_size(text)
        if size <= 0:
            logger.error("Failed to convert string to UTF-8")
            raise EncodingConversionError("Failed to convert string to UTF-8")
        data, written = converter.convert(text, size)
        assert written == size
        return data


_codec: Optional[ConsoleCodec] = None


def default_codec() -> ConsoleCodec:
    """Return the process-wide codec, creating it on first use."""

    global _codec
    if _codec is None:
        _codec = ConsoleCodec()
    return _codec


def init_console() -> Optional[ConsoleState]:
    return default_codec().setup()


def reset_console() -> None:
    default_codec().teardown()


def to_utf8(text: str) -> bytes:
    return default_codec().to_utf8(text)


@contextlib.contextmanager
def utf8_console(codec: ConsoleCodec | None = None) -> Iterator[ConsoleCodec]:
    """Run the enclosed block with a UTF-8 console, restoring it afterwards."""

    codec = codec or default_codec()
    codec.setup()
    try:
        yield codec
    finally:
        codec.teardown()


__all__ = [
    "ConsoleState",
    "ConsoleCodec",
    "WindowsConsole",
    "PosixLocale",
    "CodecConverter",
    "WideCharConverter",
    "default_codec",
    "init_console",
    "reset_console",
    "to_utf8",
    "utf8_console",
]
