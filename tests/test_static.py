import os

from mjpegstreamer.static import find_static_file_path


def _make_root(tmp_path):
    (tmp_path / "index.html").write_text("root")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "index.html").write_text("sub")
    (sub / "app.js").write_text("js")
    (tmp_path / "empty").mkdir()
    return str(tmp_path)


def test_regular_file_found(tmp_path):
    root = _make_root(tmp_path)
    result = find_static_file_path(root, "/sub/app.js")
    assert result == f"{root}//sub/app.js"
    assert os.path.samefile(result, tmp_path / "sub" / "app.js")


def test_directory_serves_index(tmp_path):
    root = _make_root(tmp_path)
    result = find_static_file_path(root, "/sub")
    assert result == f"{root}//sub/index.html"


def test_root_directory_serves_index(tmp_path):
    root = _make_root(tmp_path)
    result = find_static_file_path(root, "/")
    assert result == f"{root}///index.html"
    assert os.path.samefile(result, tmp_path / "index.html")


def test_directory_without_index(tmp_path):
    root = _make_root(tmp_path)
    assert find_static_file_path(root, "/empty") is None


def test_missing_file(tmp_path):
    root = _make_root(tmp_path)
    assert find_static_file_path(root, "/nope.html") is None


def test_empty_request_path(tmp_path):
    root = _make_root(tmp_path)
    assert find_static_file_path(root, "") is None
    assert find_static_file_path(root, ".") is None


def test_symlink_is_rejected(tmp_path):
    root = _make_root(tmp_path)
    os.symlink(tmp_path / "index.html", tmp_path / "link.html")
    assert find_static_file_path(root, "/link.html") is None


def test_traversal_stays_under_root(tmp_path):
    outside = tmp_path / "secret.txt"
    outside.write_text("x")
    root_dir = tmp_path / "www"
    root_dir.mkdir()
    root = str(root_dir)
    assert find_static_file_path(root, "../secret.txt") is None
    assert find_static_file_path(root, "/../../secret.txt") is None


def test_traversal_resolves_inside_root(tmp_path):
    root = _make_root(tmp_path)
    result = find_static_file_path(root, "../../sub/app.js")
    assert result == f"{root}//sub/app.js"
    assert os.path.samefile(result, tmp_path / "sub" / "app.js")