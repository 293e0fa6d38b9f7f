"""
Unit tests for hosts path resolution and loading.
"""

import os

import pytest

import hosts_core
from hosts_core import (
    DEFAULT_HOSTS_PATH,
    HostsReadError,
    decode_hosts_bytes,
    display_path,
    get_hosts_path,
    read_hosts_file,
)


def test_path_uses_system_root():
    """The hosts path is built under SystemRoot when it is set."""
    path = get_hosts_path({"SystemRoot": "D:\\Win"})
    assert path == os.path.join("D:\\Win", "System32", "drivers", "etc", "hosts")


def test_path_falls_back_when_system_root_unset():
    assert get_hosts_path({}) == DEFAULT_HOSTS_PATH


def test_path_falls_back_when_system_root_empty():
    assert get_hosts_path({"SystemRoot": ""}) == DEFAULT_HOSTS_PATH


def test_path_reads_process_environment(monkeypatch):
    monkeypatch.delenv("SystemRoot", raising=False)
    assert get_hosts_path() == DEFAULT_HOSTS_PATH


def test_display_path():
    assert display_path("C:\\hosts") == "Path: C:\\hosts"


def test_utf8_decoded_unchanged():
    text = "127.0.0.1 localhost\n# naïve comment ✓\n"
    assert decode_hosts_bytes(text.encode("utf-8")) == text


def test_tabs_become_four_spaces():
    assert decode_hosts_bytes(b"127.0.0.1\tlocalhost\t\n") == "127.0.0.1    localhost    \n"


def test_gbk_fallback():
    """Bytes that are not UTF-8 are decoded as GBK."""
    raw = "# 中文注释\n127.0.0.1\tlocalhost\n".encode("gbk")
    with pytest.raises(UnicodeDecodeError):
        raw.decode("utf-8")

    assert decode_hosts_bytes(raw) == "# 中文注释\n127.0.0.1    localhost\n"


def test_undecodable_bytes_are_replaced():
    """Decoding never fails, garbage becomes replacement characters."""
    text = decode_hosts_bytes(b"ok\n\xff")
    assert text.startswith("ok\n")
    assert "\ufffd" in text


def test_read_hosts_file(tmp_path):
    hosts = tmp_path / "hosts"
    hosts.write_bytes(b"127.0.0.1\tlocalhost\r\n")

    assert read_hosts_file(str(hosts)) == "127.0.0.1    localhost\r\n"


def test_read_missing_file_raises(tmp_path):
    with pytest.raises(HostsReadError) as exc_info:
        read_hosts_file(str(tmp_path / "nope"))

    assert exc_info.value.message.startswith("Cannot read hosts file: ")
    assert isinstance(exc_info.value.__cause__, OSError)


def test_read_defaults_to_resolved_path(tmp_path, monkeypatch):
    etc = tmp_path / "System32" / "drivers" / "etc"
    etc.mkdir(parents=True)
    (etc / "hosts").write_bytes(b"::1 localhost\n")
    monkeypatch.setenv("SystemRoot", str(tmp_path))

    assert read_hosts_file() == "::1 localhost\n"


def test_admin_check_on_posix(monkeypatch):
    monkeypatch.setattr(os, "getuid", lambda: 0, raising=False)
    assert hosts_core.is_running_as_admin() is True

    monkeypatch.setattr(os, "getuid", lambda: 1000, raising=False)
    assert hosts_core.is_running_as_admin() is False
