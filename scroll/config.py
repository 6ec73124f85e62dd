import os
from pathlib import Path
from typing import Dict, FrozenSet, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# Path -> methods that need a session cookie
DEFAULT_PROTECTED_ROUTES = {
    "/api/auth/status": frozenset({"GET"}),
    "/api/notes": frozenset({"GET", "POST"}),
}


# PUBLIC_INTERFACE
class Settings(BaseModel):
    """
    Process configuration, built once at startup and handed to create_app.
    jwt_secret may be missing; requests that need it answer 500 instead of the process refusing to start.
    """
    model_config = ConfigDict(frozen=True)

    database_url: str = "sqlite:///./scroll.db"
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: int = 3600
    public_dir: Path = Field(default_factory=lambda: Path.cwd() / "public")
    max_body_bytes: int = 1024 * 1024
    host: str = "127.0.0.1"
    port: int = 300
    protected_routes: Dict[str, FrozenSet[str]] = Field(default_factory=lambda: dict(DEFAULT_PROTECTED_ROUTES))

    # PUBLIC_INTERFACE
    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the environment, loading .env first."""
        load_dotenv(find_dotenv(usecwd=True))
        return cls(
            database_url=os.environ.get("DATABASE_URL", "sqlite:///./scroll.db"),
            jwt_secret=os.environ.get("JWT_SECRET") or None,
            jwt_algorithm=os.environ.get("JWT_ALGORITHM", "HS256"),
            token_ttl_seconds=int(os.environ.get("JWT_EXPIRES_IN", 3600)),
            public_dir=Path(os.environ.get("PUBLIC_DIR", Path.cwd() / "public")),
            max_body_bytes=int(os.environ.get("MAX_BODY_BYTES", 1024 * 1024)),
            host=os.environ.get("HOST", "127.0.0.1"),
            port=int(os.environ.get("PORT", 300)),
        )
