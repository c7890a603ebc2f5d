"""Lookup of static files under a document root."""

import logging
import os
import stat
from typing import Optional

from mjpegstreamer.path import simplify_request_path

__all__ = ["find_static_file_path"]

_log = logging.getLogger(__name__)


def _lstat(path: str) -> Optional[os.stat_result]:
    try:
        return os.lstat(path)
    except OSError as exc:
        _log.debug("HTTP: Can't stat() static path %s: %s", path, exc.strerror)
        return None


def find_static_file_path(root_path: str, request_path: str) -> Optional[str]:
    """Return the readable regular file serving ``request_path``, or None.

    A directory is served by its ``index.html``. Symlinks are never
    followed, and the request path is simplified so it cannot leave the root.
    """
    simplified = simplify_request_path(request_path)
    if not simplified:
        _log.debug("HTTP: Invalid request path %s to static", request_path)
        return None

    path = f"{root_path}/{simplified}"
    st = _lstat(path)
    if st is None:
        return None
    if stat.S_ISDIR(st.st_mode):
        _log.debug("HTTP: Requested static path %s is a directory, trying %s/index.html", path, path)
        path += "/index.html"
        st = _lstat(path)
        if st is None:
            return None

    if not stat.S_ISREG(st.st_mode):
        _log.debug("HTTP: Not a regular file: %s", path)
        return None

    if not os.access(path, os.R_OK):
        _log.debug("HTTP: Can't access() R_OK file %s", path)
        return None
    return path