import ctypes
import locale
import os
import sys

import pytest

from hostprobe import console
from hostprobe.console import (
    ConsoleCodec,
    ConsoleState,
    PosixLocale,
    WideCharConverter,
    WindowsConsole,
)
from hostprobe.errors import EncodingConversionError


class FakeWindowsConsole:
    mutable = True

    def __init__(self, input_mode=437, output_mode=850):
        self.input_mode = input_mode
        self.output_mode = output_mode
        self.captures = 0

    def capture(self):
        self.captures += 1
        return ConsoleState(self.input_mode, self.output_mode)

    def apply_utf8(self):
        self.input_mode = console.CP_UTF8
        self.output_mode = console.CP_UTF8

    def restore(self, state):
        self.input_mode = state.input_mode
        self.output_mode = state.output_mode


class CountingConverter:
    def __init__(self, size=None):
        self.size = size
        self.calls = []

    def required_size(self, text):
        self.calls.append(("size", text))
        return len(text.encode("utf-8")) if self.size is None else self.size

    def convert(self, text, size):
        self.calls.append(("convert", text))
        data = text.encode("utf-8")
        return data, len(data)


def test_setup_then_teardown_restores_state():
    backend = FakeWindowsConsole(437, 1252)
    codec = ConsoleCodec(backend)
    assert codec.captured is False

    assert codec.setup() == ConsoleState(437, 1252)
    assert codec.captured is True
    assert (backend.input_mode, backend.output_mode) == (console.CP_UTF8, console.CP_UTF8)

    codec.teardown()
    assert (backend.input_mode, backend.output_mode) == (437, 1252)


def test_state_captured_only_once():
    backend = FakeWindowsConsole(437, 850)
    codec = ConsoleCodec(backend)
    codec.setup()
    codec.setup()
    assert backend.captures == 1
    codec.teardown()
    assert (backend.input_mode, backend.output_mode) == (437, 850)


def test_teardown_without_setup_is_noop():
    backend = FakeWindowsConsole(437, 850)
    ConsoleCodec(backend).teardown()
    assert (backend.input_mode, backend.output_mode) == (437, 850)


def test_posix_picks_first_accepted_locale(monkeypatch):
    tried = []

    def fake_setlocale(category, name=None):
        tried.append(name)
        if name != "en_US.UTF-8":
            raise locale.Error("unsupported locale setting")
        return name

    monkeypatch.setattr(locale, "setlocale", fake_setlocale)
    monkeypatch.delenv("LC_ALL", raising=False)
    backend = PosixLocale()
    codec = ConsoleCodec(backend)

    assert codec.setup() is None
    assert codec.captured is False
    assert tried == ["C.UTF-8", "POSIX.UTF-8", "en_US.UTF-8"]
    assert backend.selected == "en_US.UTF-8"
    assert os.environ["LC_ALL"] == "en_US.UTF-8"

    codec.teardown()
    assert os.environ["LC_ALL"] == "en_US.UTF-8"


def test_posix_without_utf8_locale_changes_nothing(monkeypatch):
    def fake_setlocale(category, name=None):
        raise locale.Error("unsupported locale setting")

    monkeypatch.setattr(locale, "setlocale", fake_setlocale)
    monkeypatch.setenv("LC_ALL", "de_DE.ISO-8859-1")
    backend = PosixLocale()
    ConsoleCodec(backend).setup()
    assert backend.selected is None
    assert os.environ["LC_ALL"] == "de_DE.ISO-8859-1"


def test_to_utf8_empty_input_makes_no_calls():
    converter = CountingConverter()
    codec = ConsoleCodec(FakeWindowsConsole(), converter)
    assert codec.to_utf8("") == b""
    assert converter.calls == []


def test_to_utf8_converts():
    converter = CountingConverter()
    codec = ConsoleCodec(FakeWindowsConsole(), converter)
    assert codec.to_utf8("café ✓") == "café ✓".encode("utf-8")
    assert [kind for kind, _ in converter.calls] == ["size", "convert"]


def test_to_utf8_zero_size_raises(caplog):
    codec = ConsoleCodec(FakeWindowsConsole(), CountingConverter(size=0))
    with pytest.raises(EncodingConversionError):
        codec.to_utf8("text")
    assert "Failed to convert string to UTF-8" in caplog.text


def test_codec_converter_rejects_lone_surrogate():
    codec = ConsoleCodec(FakeWindowsConsole(), console.CodecConverter())
    with pytest.raises(EncodingConversionError):
        codec.to_utf8("\ud800")


def test_utf8_console_context_restores():
    backend = FakeWindowsConsole(437, 850)
    codec = ConsoleCodec(backend)
    with console.utf8_console(codec):
        assert backend.output_mode == console.CP_UTF8
    assert (backend.input_mode, backend.output_mode) == (437, 850)


def test_module_level_helpers(monkeypatch):
    backend = FakeWindowsConsole(437, 850)
    monkeypatch.setattr(console, "_codec", ConsoleCodec(backend, CountingConverter()))
    assert console.init_console() == ConsoleState(437, 850)
    assert console.to_utf8("x") == b"x"
    console.reset_console()
    assert (backend.input_mode, backend.output_mode) == (437, 850)


class FakeKernel32:
    def __init__(self, input_mode=437, output_mode=850):
        self.input_mode = input_mode
        self.output_mode = output_mode
        self.calls = []

    def GetConsoleCP(self):
        return self.input_mode

    def GetConsoleOutputCP(self):
        return self.output_mode

    def SetConsoleCP(self, code_page):
        self.calls.append(("SetConsoleCP", code_page))
        self.input_mode = code_page
        return 1

    def SetConsoleOutputCP(self, code_page):
        self.calls.append(("SetConsoleOutputCP", code_page))
        self.output_mode = code_page
        return 1

    def WideCharToMultiByte(self, code_page, flags, wide, units, out, size, default, used):
        data = wide.value[:units].encode("utf-8")
        self.calls.append(("WideCharToMultiByte", code_page, out is None, size))
        if out is None:
            return len(data)
        ctypes.memmove(out, data, min(size, len(data)))
        return min(size, len(data))


class FakeStdout:
    def __init__(self, line_buffering=True):
        self.line_buffering = line_buffering
        self.reconfigured = []

    def reconfigure(self, **kwargs):
        self.reconfigured.append(kwargs)
        self.line_buffering = kwargs.get("line_buffering", self.line_buffering)


@pytest.fixture
def kernel32(monkeypatch):
    fake = FakeKernel32()
    monkeypatch.setattr(
        ctypes, "WinDLL", lambda name, use_last_error=False: fake, raising=False
    )
    return fake


def test_windows_console_round_trip(kernel32, monkeypatch):
    stdout = FakeStdout(line_buffering=True)
    monkeypatch.setattr(sys, "stdout", stdout)
    codec = ConsoleCodec(WindowsConsole())

    assert codec.setup() == ConsoleState(437, 850, True)
    assert kernel32.calls == [
        ("SetConsoleCP", console.CP_UTF8),
        ("SetConsoleOutputCP", console.CP_UTF8),
    ]
    assert stdout.line_buffering is False
    assert stdout.reconfigured == [{"line_buffering": False, "write_through": False}]

    kernel32.calls.clear()
    codec.teardown()
    assert kernel32.calls == [("SetConsoleCP", 437), ("SetConsoleOutputCP", 850)]
    assert stdout.line_buffering is True
    assert stdout.reconfigured[-1] == {"line_buffering": True}


def test_windows_console_without_reconfigure(kernel32, monkeypatch):
    monkeypatch.setattr(sys, "stdout", object())
    codec = ConsoleCodec(WindowsConsole())

    assert codec.setup() == ConsoleState(437, 850, None)
    codec.teardown()
    assert (kernel32.input_mode, kernel32.output_mode) == (437, 850)


def test_wide_char_converter_queries_size_first(kernel32):
    codec = ConsoleCodec(FakeWindowsConsole(), WideCharConverter())

    assert codec.to_utf8("héllo 世") == "héllo 世".encode("utf-8")
    assert kernel32.calls == [
        ("WideCharToMultiByte", console.CP_UTF8, True, 0),
        ("WideCharToMultiByte", console.CP_UTF8, False, 10),
    ]


def test_wide_char_converter_failure_raises(kernel32, monkeypatch):
    monkeypatch.setattr(kernel32, "WideCharToMultiByte", lambda *args: 0)
    codec = ConsoleCodec(FakeWindowsConsole(), WideCharConverter())

    with pytest.raises(EncodingConversionError):
        codec.to_utf8("text")
