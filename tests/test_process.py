import logging
import os
import types

import psutil
import pytest

from hostprobe import process
from hostprobe.process import ProcessIdentity

MISSING_PID = 999_999_999


def _entries(*pairs):
    return [types.SimpleNamespace(info={"pid": pid, "ppid": ppid}) for pid, ppid in pairs]


def test_parent_pid_walks_process_table(monkeypatch):
    me = os.getpid()
    monkeypatch.setattr(
        process.psutil,
        "process_iter",
        lambda attrs: iter(_entries((1, 0), (me, 4242), (me + 1, me))),
    )
    assert process.parent_pid() == 4242


def test_parent_pid_no_match(monkeypatch):
    monkeypatch.setattr(process.psutil, "process_iter", lambda attrs: iter(_entries((1, 0))))
    assert process.parent_pid() == 0


def test_parent_pid_enumeration_failure(monkeypatch):
    def boom(attrs):
        raise psutil.AccessDenied()

    monkeypatch.setattr(process.psutil, "process_iter", boom)
    assert process.parent_pid() == 0


def test_parent_pid_matches_os():
    assert process.parent_pid() == os.getppid()


def test_linux_name_is_first_status_line(tmp_path, monkeypatch, fake_system):
    fake_system("Linux")
    (tmp_path / "42").mkdir()
    (tmp_path / "42" / "status").write_text("Name:\tpython3  \nUmask:\t0022\n")
    monkeypatch.setattr(process, "PROC_ROOT", tmp_path)
    assert process.process_name(42) == "Name:\tpython3"


def test_windows_name_is_image_path(monkeypatch, fake_system):
    fake_system("Windows")
    fake = types.SimpleNamespace(exe=lambda: r"C:\Windows\explorer.exe ")
    monkeypatch.setattr(process.psutil, "Process", lambda pid: fake)
    assert process.process_name(1234) == r"C:\Windows\explorer.exe"


def test_macos_name(monkeypatch, fake_system):
    fake_system("Darwin")
    fake = types.SimpleNamespace(name=lambda: "launchd")
    monkeypatch.setattr(process.psutil, "Process", lambda pid: fake)
    assert process.process_name(1) == "launchd"


@pytest.mark.parametrize("system", ["Windows", "Darwin", "Linux"])
def test_access_denied_is_empty(system, monkeypatch, fake_system, tmp_path):
    fake_system(system)
    monkeypatch.setattr(process, "PROC_ROOT", tmp_path)

    def denied(pid):
        raise psutil.AccessDenied(pid)

    monkeypatch.setattr(process.psutil, "Process", denied)
    assert process.process_name(4) == ""


@pytest.mark.parametrize("pid", [MISSING_PID, -1])
def test_missing_process_is_empty(pid, caplog):
    with caplog.at_level(logging.DEBUG, logger="hostprobe.process"):
        assert process.process_name(pid) == ""
    assert "Could not query process" in caplog.text


def test_identify_current_process(monkeypatch):
    monkeypatch.setattr(process, "parent_pid", lambda: 77)
    monkeypatch.setattr(process, "process_name", lambda pid: "me")
    ident = process.identify()
    assert ident == ProcessIdentity(pid=os.getpid(), parent_pid=77, name="me")


def test_identify_missing_process_has_no_details():
    ident = process.identify(MISSING_PID)
    assert ident.pid == MISSING_PID
    assert ident.parent_pid is None
    assert ident.name is None
