from pathlib import PurePosixPath

import pytest

from scroll.api.static import build_static_routes, route_for


def test_build_static_routes(public_dir):
    routes = build_static_routes(public_dir)

    assert set(routes) == {
        "/", "/login", "/docs", "/docs/intro", "/styles.css", "/scripts/app.js",
        "/index.html", "/login.html", "/docs/index.html", "/docs/intro.html",
    }
    assert routes["/"].file_path == (public_dir / "index.html").resolve()
    assert routes["/"].content_type == "text/html"
    assert routes["/docs"].file_path == (public_dir / "docs" / "index.html").resolve()
    assert routes["/styles.css"].content_type == "text/css"
    assert routes["/scripts/app.js"].content_type == "application/javascript"


def test_unknown_extensions_are_not_routed(public_dir):
    routes = build_static_routes(public_dir)
    assert "/logo.png" not in routes
    assert "/logo" not in routes


def test_table_is_read_only(public_dir):
    routes = build_static_routes(public_dir)
    with pytest.raises(TypeError):
        routes["/new"] = routes["/"]


def test_missing_directory_gives_empty_table(tmp_path):
    assert dict(build_static_routes(tmp_path / "nope")) == {}


@pytest.mark.parametrize("relative,expected", [
    ("index.html", "/"),
    ("about.html", "/about"),
    ("a/b/index.html", "/a/b"),
    ("myindex.html", "/myindex"),
    ("index.css", "/index.css"),
    ("notes.txt", None),
])
def test_route_for(relative, expected):
    assert route_for(PurePosixPath(relative)) == expected


def test_index_page_and_root_are_the_same_file(public_dir):
    routes = build_static_routes(public_dir)
    assert routes["/index.html"] == routes["/"]
    assert routes["/docs/index.html"] == routes["/docs"]


def test_static_pages_through_app(client):
    root = client.get("/")
    assert root.status_code == 200
    assert root.headers["content-type"].startswith("text/html")
    assert root.text == "<h1>home</h1>"
    assert client.get("/index.html").text == root.text
    assert client.get("/docs").text == "<h1>docs</h1>"
    assert client.get("/styles.css").headers["content-type"].startswith("text/css")


def test_static_page_rejects_post_through_app(client):
    res = client.post("/login", json={"email": "a@x.com"})
    assert res.status_code == 405
    assert res.json()["message"] == "Method not allowed."


def test_unrouted_file_is_not_found(client):
    assert client.get("/logo.png").status_code == 404
