"""Guessing of MIME types from file extensions."""

__all__ = ["guess_mime_type"]

_MIME_TYPES = {
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "txt": "text/plain",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "ico": "image/x-icon",
    "bmp": "image/bmp",
    "svg": "image/svg+xml",
    "swf": "application/x-shockwave-flash",
    "cab": "application/x-shockwave-flash",
    "jar": "application/java-archive",
    "json": "application/json",
}

_FALLBACK = "application/misc"


def guess_mime_type(path: str) -> str:
    """Return the MIME type for the extension of ``path``."""
    dot = path.rfind(".")
    if dot < 0 or "/" in path[dot:]:
        return _FALLBACK
    ext = path[dot + 1:]
    if not ext.isascii():
        return _FALLBACK
    return _MIME_TYPES.get(ext.lower(), _FALLBACK)