from __future__ import annotations

import os
import socket
from pathlib import Path

import pytest

from stf_parse.filesystem import get_max_file_size, read_text


def test_get_max_file_size_uses_default_when_unset(monkeypatch):
    monkeypatch.delenv("STF_PARSE_MAX_FILE_SIZE", raising=False)
    assert get_max_file_size(default=1234) == 1234


def test_get_max_file_size_reads_environment(monkeypatch):
    monkeypatch.setenv("STF_PARSE_MAX_FILE_SIZE", "2048")
    assert get_max_file_size() == 2048


@pytest.mark.parametrize("value", ["invalid", "0", "-5", "1.5"])
def test_get_max_file_size_rejects_bad_values(monkeypatch, value):
    monkeypatch.setenv("STF_PARSE_MAX_FILE_SIZE", value)
    with pytest.raises(ValueError) as exc_info:
        get_max_file_size()
    assert "STF_PARSE_MAX_FILE_SIZE" in str(exc_info.value)


def test_read_text_missing_file(tmp_path: Path):
    with pytest.raises(IOError) as exc_info:
        read_text(tmp_path / "missing.csv", 1024)
    assert "Cannot read" in str(exc_info.value)


def test_read_text_follows_symlinks(tmp_path: Path):
    target = tmp_path / "actual.csv"
    target.write_text("a,b\n", encoding="utf-8")
    link = tmp_path / "alias.csv"
    os.symlink(target, link)

    assert read_text(link, 1024) == "a,b\n"


def test_read_text_rejects_directory(tmp_path: Path):
    directory = tmp_path / "folder"
    directory.mkdir()

    with pytest.raises(IOError) as exc_info:
        read_text(directory, 1024)
    assert "is not a regular file" in str(exc_info.value)


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="mkfifo not available")
def test_read_text_rejects_fifo(tmp_path: Path):
    fifo = tmp_path / "pipe.csv"
    try:
        os.mkfifo(fifo)
    except OSError:  # pragma: no cover
        pytest.skip("Unable to create FIFO")

    with pytest.raises(IOError) as exc_info:
        read_text(fifo, 1024)
    assert "is not a regular file" in str(exc_info.value)


@pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="Unix sockets not available")
def test_read_text_rejects_socket(tmp_path: Path):
    socket_path = tmp_path / "socket.csv"
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        try:
            sock.bind(str(socket_path))
        except OSError:  # pragma: no cover
            pytest.skip("Unable to bind Unix socket")

        with pytest.raises(IOError) as exc_info:
            read_text(socket_path, 1024)
        assert "is not a regular file" in str(exc_info.value)
    finally:
        sock.close()


def test_read_text_accepts_file_at_limit(tmp_path: Path):
    target = tmp_path / "data.csv"
    target.write_text("abcd", encoding="utf-8")

    assert read_text(target, 4) == "abcd"


def test_read_text_rejects_large_file(tmp_path: Path):
    target = tmp_path / "data.csv"
    target.write_text("abcde", encoding="utf-8")

    with pytest.raises(IOError) as exc_info:
        read_text(target, 4)
    assert "is larger than the 4 byte limit" in str(exc_info.value)


def test_read_text_keeps_carriage_returns(tmp_path: Path):
    target = tmp_path / "dos.csv"
    target.write_bytes(b"a,b\r\nc\r")

    assert read_text(target, 1024) == "a,b\r\nc\r"


def test_read_text_drops_byte_order_mark(tmp_path: Path):
    target = tmp_path / "excel.csv"
    target.write_bytes(b"\xef\xbb\xbfname,city\n")

    assert read_text(target, 1024) == "name,city\n"


def test_read_text_rejects_invalid_utf8(tmp_path: Path):
    target = tmp_path / "latin1.csv"
    target.write_bytes(b"caf\xe9\n")

    with pytest.raises(IOError) as exc_info:
        read_text(target, 1024)
    assert "is not valid UTF-8" in str(exc_info.value)
