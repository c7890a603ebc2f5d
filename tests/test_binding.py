import os
import select
import shutil
import socket
import stat
import tempfile
from pathlib import Path

import pytest

from mjpegstreamer.binding import BindError, bind_systemd, bind_unix


@pytest.fixture
def short_dir():
    directory = tempfile.mkdtemp(prefix="mjs", dir="/tmp")
    yield Path(directory)
    shutil.rmtree(directory, ignore_errors=True)


def test_bind_creates_listening_socket(short_dir):
    path = str(short_dir / "s.sock")
    server = bind_unix(path, False, 0)
    try:
        assert stat.S_ISSOCK(os.stat(path).st_mode)
        assert server.getblocking() is False
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as client:
            client.connect(path)
            readable, _, _ = select.select([server], [], [], 2)
            assert readable == [server]
            conn, _ = server.accept()
            conn.close()
    finally:
        server.close()


def test_bind_applies_mode(short_dir):
    path = str(short_dir / "m.sock")
    with bind_unix(path, False, 0o600):
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_path_too_long():
    with pytest.raises(BindError, match="max=107"):
        bind_unix("/tmp/" + "x" * 200, False, 0)


def test_existing_file_without_rm_fails(short_dir):
    path = short_dir / "busy.sock"
    path.write_text("old")
    with pytest.raises(BindError):
        bind_unix(str(path), False, 0)


def test_existing_file_with_rm_is_replaced(short_dir):
    path = short_dir / "busy.sock"
    path.write_text("old")
    with bind_unix(str(path), True, 0) as server:
        assert server.getsockname() == str(path)
        assert stat.S_ISSOCK(os.stat(path).st_mode)


def test_rm_of_missing_file_is_fine(short_dir):
    path = short_dir / "fresh.sock"
    with bind_unix(str(path), True, 0) as server:
        assert server.getsockname() == str(path)
        assert stat.S_ISSOCK(os.stat(path).st_mode)


def test_rm_of_directory_fails(short_dir):
    path = short_dir / "dir"
    path.mkdir()
    with pytest.raises(BindError):
        bind_unix(str(path), True, 0)
    assert path.is_dir()


def test_systemd_without_environment():
    environ = {}
    with pytest.raises(BindError, match="No available systemd sockets"):
        bind_systemd(environ)
    assert environ == {}


def test_systemd_other_pid_clears_environment():
    environ = {"LISTEN_PID": str(os.getpid() + 1), "LISTEN_FDS": "1", "LISTEN_FDNAMES": "http", "HOME": "/root"}
    with pytest.raises(BindError):
        bind_systemd(environ)
    assert environ == {"HOME": "/root"}


def test_systemd_zero_fds():
    environ = {"LISTEN_PID": str(os.getpid()), "LISTEN_FDS": "0"}
    with pytest.raises(BindError):
        bind_systemd(environ)
    assert "LISTEN_FDS" not in environ


@pytest.mark.parametrize(
    "environ",
    [
        {"LISTEN_PID": "abc", "LISTEN_FDS": "1"},
        {"LISTEN_PID": "-5", "LISTEN_FDS": "1"},
        {"LISTEN_PID": str(os.getpid()), "LISTEN_FDS": "many"},
        {"LISTEN_PID": str(os.getpid()), "LISTEN_FDS": "-1"},
    ],
)
def test_systemd_invalid_values(environ):
    with pytest.raises(BindError):
        bind_systemd(environ)
    assert "LISTEN_PID" not in environ