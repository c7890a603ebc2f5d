"""Normalisation of HTTP request paths."""

from itertools import zip_longest

__all__ = ["simplify_request_path"]


def _strip_leading_dots(path: str) -> str:
    if path.startswith("."):
        if path[1:2] in ("/", ""):
            return path[1:]
        if path[1:2] == "." and path[2:3] in ("/", ""):
            return path[2:]
    return path


def simplify_request_path(path: str) -> str:
    """Collapse ``//``, ``/./`` and ``/../`` segments of a request path.

    The result never climbs above the root, so it is safe to join onto a
    document root.
    """
    path = path.split("\0", 1)[0]
    if not path:
        return ""

    path = _strip_leading_dots(path.lstrip(" "))

    out: list[str] = []
    slash = 0
    pre1 = ""
    for current, following in zip_longest(path, path[1:], fillvalue=""):
        pre2, pre1 = pre1, current
        out.append(current)
        if following not in ("/", ""):
            continue

        at_end = following == ""
        token_len = len(out) - slash
        if token_len == 3 and pre2 == "." and pre1 == "." and out[slash] == "/":
            # "/../" or "/.." at the end: drop the previous component too
            cut = slash
            if cut > 0:
                cut -= 1
                while cut > 0 and out[cut] != "/":
                    cut -= 1
            if at_end:
                cut += 1
            del out[cut:]
        elif token_len == 1 or (pre2 == "/" and pre1 == "."):
            # "//" or "/./", or "/" / "/." at the end
            cut = slash + 1 if at_end else slash
            del out[cut:]
        slash = len(out)

    return "".join(out)