import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Response
from sqlalchemy.orm import Session

from scroll.api.core import (
    AuthStatus, Credentials, Message, NoteCreate, NoteCreated, NoteRead, NotesList,
    authenticate_user, create_note, create_user, get_current_user_id, get_json_body,
    get_notes, get_settings, get_token_codec, parse_body,
)
from scroll.api.errors import MISSING_SECRET, register_exception_handlers
from scroll.api.middleware import (
    AuthGate, BodyParser, Pipeline, PipelineMiddleware, RequestLogger, StaticAssets,
)
from scroll.api.security import TOKEN_COOKIE
from scroll.api.static import build_static_routes
from scroll.config import Settings
from scroll.db.db import create_db_engine, create_session_factory, get_db, init_db

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "auth", "description": "Signup, login and session status"},
    {"name": "notes", "description": "Create and list your notes"},
]

router = APIRouter()


@router.get("/health", tags=["health"])
def health_check():
    """Health check."""
    return {"message": "Healthy"}

# --- Authentication Endpoints ---

# PUBLIC_INTERFACE
@router.post("/api/auth/signup", response_model=Message, status_code=201, tags=["auth"], summary="Register a new user")
def signup(body: Any = Depends(get_json_body), db: Session = Depends(get_db)):
    """Register a new user. Email must be unique."""
    credentials = parse_body(Credentials, body)
    create_user(db, credentials)
    return {"message": "User created successfully."}

# PUBLIC_INTERFACE
@router.post("/api/auth/login", response_model=Message, tags=["auth"], summary="Log in and receive a session cookie")
def login(
    response: Response,
    body: Any = Depends(get_json_body),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Check the credentials and set an HttpOnly `token` cookie holding a signed session token.
    """
    credentials = parse_body(Credentials, body)
    user = authenticate_user(db, credentials)

    codec = get_token_codec(settings)
    if codec is None:
        logger.error("JWT_SECRET is not configured, cannot issue a session")
        raise HTTPException(status_code=500, detail=MISSING_SECRET)

    response.set_cookie(TOKEN_COOKIE, codec.issue(user.id), httponly=True, path="/")
    return {"message": "User logged in."}

# PUBLIC_INTERFACE
@router.get("/api/auth/status", response_model=AuthStatus, tags=["auth"], summary="Check the session")
def auth_status(user_id: int = Depends(get_current_user_id)):
    """Reaching this handler means the session cookie was verified."""
    return {"message": "Authenticated.", "user_id": user_id}

# PUBLIC_INTERFACE
@router.post("/api/auth/logout", response_model=Message, tags=["auth"], summary="Clear the session cookie")
def logout(response: Response):
    """Tokens are not revoked server side; the browser just forgets the cookie."""
    response.delete_cookie(TOKEN_COOKIE, path="/", httponly=True)
    return {"message": "User logged out."}

# --- Notes Endpoints ---

# PUBLIC_INTERFACE
@router.get("/api/notes", response_model=NotesList, tags=["notes"], summary="List my notes")
def list_notes(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """List the notes owned by the authenticated user."""
    return {"notes": [NoteRead.model_validate(note) for note in get_notes(db, user_id)]}

# PUBLIC_INTERFACE
@router.post("/api/notes", response_model=NoteCreated, status_code=201, tags=["notes"], summary="Create a new note")
def create_user_note(
    body: Any = Depends(get_json_body),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create note belonging to authenticated user."""
    note = parse_body(NoteCreate, body)
    created = create_note(db, user_id, note)
    return {"message": "Note created successfully.", "note": NoteRead.model_validate(created)}


# PUBLIC_INTERFACE
def configure_logging(level: int = logging.INFO):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%d/%m/%Y %H:%M:%S",
    )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application: database schema, static route table and request pipeline.
    Everything the handlers need hangs off app.state.
    """
    settings = settings or Settings.from_env()

    engine = create_db_engine(settings.database_url)
    init_db(engine)
    static_routes = build_static_routes(settings.public_dir)

    if not settings.jwt_secret:
        logger.warning("JWT_SECRET is not set; login and authenticated routes will answer 500")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        engine.dispose()

    app = FastAPI(
        title="Scroll",
        description="A simple note taking backend with cookie sessions.",
        version="1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.static_routes = static_routes

    pipeline = Pipeline([
        RequestLogger(),
        BodyParser(settings.max_body_bytes),
        AuthGate(settings.protected_routes, lambda: get_token_codec(settings)),
        StaticAssets(static_routes),
    ])
    app.add_middleware(PipelineMiddleware, pipeline=pipeline)
    register_exception_handlers(app)
    app.include_router(router)
    return app
