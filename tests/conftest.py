import pytest
from fastapi.testclient import TestClient

from scroll.api.main import create_app
from scroll.config import Settings

SECRET = "test-secret"


@pytest.fixture
def public_dir(tmp_path):
    root = tmp_path / "public"
    (root / "docs").mkdir(parents=True)
    (root / "scripts").mkdir()
    (root / "index.html").write_text("<h1>home</h1>")
    (root / "login.html").write_text("<h1>login</h1>")
    (root / "docs" / "index.html").write_text("<h1>docs</h1>")
    (root / "docs" / "intro.html").write_text("<h1>intro</h1>")
    (root / "styles.css").write_text("body {}")
    (root / "scripts" / "app.js").write_text("console.log(1);")
    (root / "logo.png").write_bytes(b"\x89PNG")
    return root


@pytest.fixture
def settings(tmp_path, public_dir):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'scroll.db'}",
        jwt_secret=SECRET,
        public_dir=public_dir,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


def signup(client, email="a@x.com", password="pw12345"):
    return client.post("/api/auth/signup", json={"email": email, "password": password})


def login(client, email="a@x.com", password="pw12345"):
    """Log in and return the session token, leaving the client's cookie jar empty."""
    res = client.post("/api/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    token = res.cookies["token"]
    client.cookies.clear()
    return token


def auth_header(token):
    return {"Cookie": f"token={token}"}
