import os

import pytest

from app.core.exceptions import BadPathException, NotFoundException
from app.services import static_files
from app.services.static_files import guess_media_type, resolve_static_path, serve_static


@pytest.mark.parametrize("path", [
    "/../../etc/passwd",
    "/..",
    "/assets/../../secret.txt",
    "/assets/../../../etc/passwd",
    "/index.html\x00.png",
    "/..\\..\\windows\\win.ini",
])
def test_traversal_rejected(tmp_path, path):
    with pytest.raises(BadPathException):
        resolve_static_path(path, str(tmp_path))


def test_traversal_rejected_before_filesystem_access(make_settings, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("filesystem touched")

    monkeypatch.setattr(static_files.os.path, "isfile", fail)
    with pytest.raises(BadPathException):
        serve_static("/../../etc/passwd", make_settings())


def test_resolve_inside_root(tmp_path):
    root = str(tmp_path)
    assert resolve_static_path("/", root) == os.path.join(root, "index.html")
    assert resolve_static_path("", root) == os.path.join(root, "index.html")
    assert resolve_static_path("/assets/../app.js", root) == os.path.join(root, "app.js")
    assert resolve_static_path("/./assets/logo.png", root) == os.path.join(root, "assets", "logo.png")
    assert resolve_static_path("/assets/..", root) == root


def test_sibling_directory_with_common_prefix_rejected(tmp_path):
    root = tmp_path / "public"
    root.mkdir()
    with pytest.raises(BadPathException):
        resolve_static_path("/../public-private/key.pem", str(root))


@pytest.mark.parametrize("name, expected", [
    ("index.html", "text/html"),
    ("style.CSS", "text/css"),
    ("app.js", "application/javascript"),
    ("data.json", "application/json"),
    ("logo.png", "image/png"),
    ("photo.jpg", "image/jpeg"),
    ("photo.jpeg", "image/jpeg"),
    ("icon.svg", "image/svg+xml"),
    ("favicon.ico", "image/x-icon"),
    ("notes.txt", "text/plain"),
    ("archive.tar.gz", "application/octet-stream"),
    ("Makefile", "application/octet-stream"),
])
def test_guess_media_type(name, expected):
    assert guess_media_type(name).split(";")[0] == expected


def test_serves_file_with_type_and_no_store(client):
    resp = client.get("/app.js")
    assert resp.status_code == 200
    assert resp.text == "console.log('bridge');"
    assert resp.headers["Content-Type"].startswith("application/javascript")
    assert resp.headers["Cache-Control"] == "no-store"

    resp = client.get("/assets/logo.png")
    assert resp.status_code == 200
    assert resp.headers["Content-Type"] == "image/png"
    assert resp.content == b"\x89PNG\r\n\x1a\n"

    resp = client.get("/data.bin")
    assert resp.headers["Content-Type"] == "application/octet-stream"


def test_root_serves_index(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "spa index" in resp.text
    assert resp.headers["Content-Type"].startswith("text/html")


@pytest.mark.parametrize("path", ["/dashboard", "/users/42/settings", "/assets", "/assets/"])
def test_spa_fallback(client, path):
    resp = client.get(path)
    assert resp.status_code == 200
    assert "spa index" in resp.text
    assert resp.headers["Cache-Control"] == "no-store"


def test_percent_encoded_path_is_decoded(client, public_dir):
    (public_dir / "hello world.txt").write_text("spaced")
    resp = client.get("/hello%20world.txt")
    assert resp.status_code == 200
    assert resp.text == "spaced"


def test_encoded_traversal_returns_400(client):
    resp = client.get("/%2e%2e/%2e%2e/etc/passwd")
    assert resp.status_code == 400
    data = resp.json()
    assert data["error"] == "bad_path"
    assert data["detail"] == "Bad Request"


def test_missing_index_returns_404(client, public_dir):
    os.remove(public_dir / "index.html")
    resp = client.get("/dashboard")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"
    assert client.get("/app.js").status_code == 200


def test_serve_static_missing_index(make_settings, tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    with pytest.raises(NotFoundException):
        serve_static("/", make_settings(PUBLIC_DIR=str(empty)))


def test_head_static(client):
    resp = client.head("/style.css")
    assert resp.status_code == 200
    assert resp.content == b""


def test_question_mark_in_path_does_not_hide_traversal(tmp_path):
    with pytest.raises(BadPathException):
        resolve_static_path("/x?/../../../etc/passwd", str(tmp_path))
    assert resolve_static_path("/a?b.txt", str(tmp_path)) == os.path.join(str(tmp_path), "a?b.txt")


def test_encoded_question_mark_traversal_returns_400(client):
    resp = client.get("/x%3F/..%2F..%2F..%2Fetc/passwd")
    assert resp.status_code == 400
    assert resp.json()["error"] == "bad_path"


def test_file_with_question_mark_is_served(client, public_dir):
    (public_dir / "a?b.txt").write_text("qmark")
    resp = client.get("/a%3Fb.txt")
    assert resp.status_code == 200
    assert resp.text == "qmark"


@pytest.mark.parametrize("method", ["PROPFIND", "TRACE", "POST"])
def test_any_method_reaches_static_responder(client, method):
    resp = client.request(method, "/dashboard")
    assert resp.status_code == 200
    assert "spa index" in resp.text
