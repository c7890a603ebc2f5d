import pytest

from mjpegstreamer.path import simplify_request_path

CASES = [
    ("", ""),
    ("   ", ""),
    ("/", "/"),
    ("//", "/"),
    ("abc", "abc"),
    ("abc//", "abc/"),
    ("abc/./xyz", "abc/xyz"),
    ("abc/.//xyz", "abc/xyz"),
    ("abc/../xyz", "/xyz"),
    ("/abc/./xyz", "/abc/xyz"),
    ("/abc//./xyz", "/abc/xyz"),
    ("/abc/../xyz", "/xyz"),
    ("abc/../xyz/.", "/xyz/"),
    ("/abc/../xyz/.", "/xyz/"),
    ("abc/./xyz/..", "abc/"),
    ("/abc/./xyz/..", "/abc/"),
    (".", ""),
    ("..", ""),
    ("...", "..."),
    ("....", "...."),
    (".../", ".../"),
    ("./xyz/..", "/"),
    (".//xyz/..", "/"),
    ("/./xyz/..", "/"),
    (".././xyz/..", "/"),
    ("/.././xyz/..", "/"),
    ("../../../etc/passwd", "/etc/passwd"),
    ("/../../../etc/passwd", "/etc/passwd"),
    ("   ../../../etc/passwd", "/etc/passwd"),
    ("   /../../../etc/passwd", "/etc/passwd"),
    ("   /foo/bar/../../../etc/passwd", "/etc/passwd"),
]


@pytest.mark.parametrize("sample, expected", CASES)
def test_simplify_request_path(sample, expected):
    assert simplify_request_path(sample) == expected


@pytest.mark.parametrize("expected", sorted({expected for _, expected in CASES}))
def test_simplified_paths_are_stable(expected):
    assert simplify_request_path(expected) == expected


@pytest.mark.parametrize("sample, _", CASES)
def test_result_has_no_parent_segments(sample, _):
    parts = simplify_request_path(sample).split("/")
    assert ".." not in parts