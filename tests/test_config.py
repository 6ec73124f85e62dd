from pathlib import Path

import pytest
from pydantic import ValidationError

from scroll.config import DEFAULT_PROTECTED_ROUTES, Settings


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("JWT_SECRET", "abc")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./other.db")
    monkeypatch.setenv("PUBLIC_DIR", "/srv/public")

    settings = Settings.from_env()

    assert settings.jwt_secret == "abc"
    assert settings.port == 8080
    assert settings.database_url == "sqlite:///./other.db"
    assert settings.public_dir == Path("/srv/public")
    assert settings.token_ttl_seconds == 3600
    assert settings.protected_routes == DEFAULT_PROTECTED_ROUTES


def test_defaults_without_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("JWT_SECRET", "PORT", "DATABASE_URL", "JWT_EXPIRES_IN", "MAX_BODY_BYTES"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.jwt_secret is None
    assert settings.port == 300
    assert settings.max_body_bytes == 1024 * 1024


def test_empty_secret_counts_as_missing(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("JWT_SECRET", "")
    assert Settings.from_env().jwt_secret is None


def test_settings_are_frozen():
    settings = Settings()
    with pytest.raises(ValidationError):
        settings.port = 1


def test_public_dir_follows_working_directory(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    assert Settings().public_dir == tmp_path / "public"
