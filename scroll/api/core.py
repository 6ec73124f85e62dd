import datetime
import logging
from typing import Any, ClassVar, List, Optional, Type, TypeVar

from fastapi import HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scroll.api.errors import BODY_MISSING, BODY_NOT_OBJECT
from scroll.api.security import TokenCodec, generate_hash, generate_salt, verify_password
from scroll.config import Settings
from scroll.db.models import Note, User

logger = logging.getLogger(__name__)

# ==== Pydantic Schemas ====

# PUBLIC_INTERFACE
class Credentials(BaseModel):
    """Signup and login input."""
    required_label: ClassVar[str] = "Email and password"

    email: StrictStr = Field(..., min_length=1)
    password: StrictStr = Field(..., min_length=1)


# PUBLIC_INTERFACE
class NoteCreate(BaseModel):
    """Input schema for creating a note."""
    required_label: ClassVar[str] = "Title and content"

    title: StrictStr = Field(..., min_length=1)
    content: StrictStr = Field(..., min_length=1)


# PUBLIC_INTERFACE
class NoteRead(BaseModel):
    """Returned data for a note."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    content: str
    created_at: datetime.datetime
    updated_at: datetime.datetime


# PUBLIC_INTERFACE
class Message(BaseModel):
    message: str


# PUBLIC_INTERFACE
class AuthStatus(Message):
    user_id: int


# PUBLIC_INTERFACE
class NotesList(BaseModel):
    notes: List[NoteRead]


# PUBLIC_INTERFACE
class NoteCreated(Message):
    note: NoteRead


# ==== Request helpers ====

ModelT = TypeVar("ModelT", bound=BaseModel)


# PUBLIC_INTERFACE
def parse_body(model: Type[ModelT], body: Any) -> ModelT:
    """
    Validate a parsed JSON body against model.
    Missing or empty fields are reported before fields of the wrong type.
    """
    if body is None:
        raise HTTPException(status_code=400, detail=BODY_MISSING)
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail=BODY_NOT_OBJECT)

    try:
        return model.model_validate(body)
    except ValidationError as e:
        errors = e.errors()
        if any(err["type"] in ("missing", "string_too_short") or err.get("input") is None for err in errors):
            raise HTTPException(status_code=400, detail=f"{model.required_label} are required.")
        raise HTTPException(status_code=400, detail=f"{model.required_label} must be string.")


# PUBLIC_INTERFACE
def get_json_body(request: Request) -> Any:
    """Body attached by the BodyParser interceptor, None when absent."""
    return getattr(request.state, "body", None)


# PUBLIC_INTERFACE
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# PUBLIC_INTERFACE
def get_token_codec(settings: Settings) -> Optional[TokenCodec]:
    """Codec for the configured secret, or None when JWT_SECRET is unset."""
    if not settings.jwt_secret:
        return None
    return TokenCodec(settings.jwt_secret, settings.jwt_algorithm, settings.token_ttl_seconds)


# PUBLIC_INTERFACE
def get_current_user_id(request: Request) -> int:
    """User id stored by the AuthGate interceptor; 401 if the request never passed it."""
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing cookie.")
    return user_id


# === CRUD for Users and Notes (used by API routes) ===

# PUBLIC_INTERFACE
def create_user(db: Session, credentials: Credentials) -> User:
    """Create a new user, raises HTTPException 409 if the email is taken."""
    salt = generate_salt()
    db_user = User(
        email=credentials.email,
        password_hash=generate_hash(credentials.password, salt),
        salt=salt,
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email address already exists.")
    db.refresh(db_user)
    logger.info("Created user %s", db_user.id)
    return db_user


# PUBLIC_INTERFACE
def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get a user by exact email address."""
    return db.query(User).filter(User.email == email).first()


# PUBLIC_INTERFACE
def authenticate_user(db: Session, credentials: Credentials) -> User:
    """Return the user matching the credentials, raising 401 with the reason otherwise."""
    user = get_user_by_email(db, credentials.email)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Failed to find user.")
    if not verify_password(credentials.password, user.salt, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password.")
    return user


# PUBLIC_INTERFACE
def create_note(db: Session, user_id: int, note: NoteCreate) -> Note:
    """Create a note for the authenticated user."""
    db_note = Note(
        title=note.title,
        content=note.content,
        user_id=user_id,
    )
    db.add(db_note)
    try:
        db.commit()
    except IntegrityError:
        # The token outlived its user
        db.rollback()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Failed to find user.")
    db.refresh(db_note)
    return db_note


# PUBLIC_INTERFACE
def get_notes(db: Session, user_id: int) -> List[Note]:
    """List notes owned by the user, oldest first."""
    return db.query(Note).filter(Note.user_id == user_id).order_by(Note.id).all()
