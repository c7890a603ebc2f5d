"""Listening sockets: UNIX domain sockets and systemd socket activation."""

import errno
import logging
import os
import socket
from collections.abc import MutableMapping
from typing import Optional

__all__ = ["BindError", "bind_unix", "bind_systemd"]

_log = logging.getLogger(__name__)

# sizeof(struct sockaddr_un.sun_path) is 108 on Linux, one byte goes to NUL
_MAX_SUN_PATH = 107
_LISTEN_BACKLOG = 128
_LISTEN_FDS_START = 3
_LISTEN_ENV_KEYS = ("LISTEN_PID", "LISTEN_FDS", "LISTEN_FDNAMES")


class BindError(OSError):
    """A listening socket could not be set up."""


def bind_unix(path: str, rm: bool, mode: int) -> socket.socket:
    """Create a non-blocking listening UNIX socket at ``path``.

    With ``rm`` an old file at ``path`` is removed first; a non-zero ``mode``
    is applied to the socket file.
    """
    if len(os.fsencode(path)) > _MAX_SUN_PATH:
        raise BindError(f"UNIX socket path is too long; max={_MAX_SUN_PATH}")

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.setblocking(False)
        if rm:
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass
            except OSError as exc:
                raise BindError(exc.errno, f"Can't remove old UNIX socket {path!r}: {exc.strerror}") from exc
        try:
            sock.bind(path)
        except OSError as exc:
            raise BindError(exc.errno, f"Can't bind HTTP to UNIX socket {path!r}: {exc.strerror}") from exc
        if mode:
            try:
                os.chmod(path, mode)
            except OSError as exc:
                raise BindError(
                    exc.errno, f"Can't set permissions {mode:o} to UNIX socket {path!r}: {exc.strerror}"
                ) from exc
        try:
            sock.listen(_LISTEN_BACKLOG)
        except OSError as exc:
            raise BindError(exc.errno, f"Can't listen UNIX socket {path!r}: {exc.strerror}") from exc
    except BaseException:
        sock.close()
        raise
    return sock


def _listen_fds(environ: MutableMapping) -> int:
    """Count the sockets passed by the service manager, then forget them."""
    try:
        pid_text = environ.get("LISTEN_PID")
        if pid_text is None:
            return 0
        try:
            pid = int(pid_text)
        except ValueError:
            return -errno.EINVAL
        if pid <= 0:
            return -errno.EINVAL
        if pid != os.getpid():
            return 0

        fds_text = environ.get("LISTEN_FDS")
        if fds_text is None:
            return 0
        try:
            count = int(fds_text)
        except ValueError:
            return -errno.EINVAL
        if count < 0:
            return -errno.EINVAL

        for fd in range(_LISTEN_FDS_START, _LISTEN_FDS_START + count):
            try:
                os.set_inheritable(fd, False)
            except OSError as exc:
                return -(exc.errno or errno.EBADF)
        return count
    finally:
        for key in _LISTEN_ENV_KEYS:
            environ.pop(key, None)


def bind_systemd(environ: Optional[MutableMapping] = None) -> socket.socket:
    """Take the first socket passed by systemd socket activation.

    Any extra passed sockets are closed. The activation variables are
    removed from ``environ`` (the process environment by default).
    """
    if environ is None:
        environ = os.environ
    count = _listen_fds(environ)
    if count < 1:
        raise BindError("No available systemd sockets")

    for extra in range(_LISTEN_FDS_START + 1, _LISTEN_FDS_START + count):
        try:
            os.close(extra)
        except OSError:
            _log.debug("Can't close extra systemd socket fd=%d", extra)

    try:
        sock = socket.socket(fileno=_LISTEN_FDS_START)
    except OSError as exc:
        raise BindError(exc.errno, f"Can't use systemd socket: {exc.strerror}") from exc
    sock.setblocking(False)
    return sock