import pytest

from mjpegstreamer.mime import guess_mime_type


@pytest.mark.parametrize(
    "path, expected",
    [
        ("index.html", "text/html"),
        ("/static/page.htm", "text/html"),
        ("style.css", "text/css"),
        ("app.js", "text/javascript"),
        ("photo.jpeg", "image/jpeg"),
        ("icon.svg", "image/svg+xml"),
        ("data.json", "application/json"),
        ("lib.jar", "application/java-archive"),
        ("movie.cab", "application/x-shockwave-flash"),
    ],
)
def test_known_extensions(path, expected):
    assert guess_mime_type(path) == expected


def test_extension_is_case_insensitive():
    assert guess_mime_type("PICTURE.PNG") == guess_mime_type("picture.png") == "image/png"


@pytest.mark.parametrize(
    "path",
    ["README", "/dir.d/file", "archive.tar.xz", "trailing.", "name.ĳson"],
)
def test_unknown_gives_fallback(path):
    assert guess_mime_type(path) == "application/misc"


def test_only_last_extension_counts():
    assert guess_mime_type("page.txt.gif") == "image/gif"