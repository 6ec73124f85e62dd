import secrets
import time
from typing import Optional

from jose import JWTError, jwt
from passlib.crypto.digest import pbkdf2_hmac
from passlib.utils import consteq

# === Password hashing parameters ===
SALT_BYTES = 16
ITERATIONS = 10000
KEYLEN = 512
DIGEST = "sha512"

TOKEN_COOKIE = "token"


class AuthenticationError(Exception):
    """Base for every reason a request fails to prove a session."""


class MissingCookie(AuthenticationError):
    pass


class MissingToken(AuthenticationError):
    pass


class InvalidToken(AuthenticationError):
    pass


# ==== Credential hashing ====

# PUBLIC_INTERFACE
def generate_salt(byte_length: int = SALT_BYTES) -> str:
    """Random per-user salt, hex encoded."""
    return secrets.token_hex(byte_length)


# PUBLIC_INTERFACE
def generate_hash(password: str, salt: str) -> str:
    """PBKDF2-HMAC-SHA512 of the password keyed by the hex salt text."""
    derived = pbkdf2_hmac(DIGEST, password.encode("utf-8"), salt.encode("utf-8"), ITERATIONS, KEYLEN)
    return derived.hex()


# PUBLIC_INTERFACE
def verify_password(password: str, salt: str, password_hash: str) -> bool:
    return consteq(generate_hash(password, salt), password_hash)


# ==== Session tokens ====

# PUBLIC_INTERFACE
class TokenCodec:
    """Issues and verifies signed session tokens carrying a user id and an expiry."""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_seconds: int = 3600):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    def issue(self, user_id: int, now: Optional[float] = None) -> str:
        issued_at = int(now if now is not None else time.time())
        claims = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self.ttl_seconds,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """Return the user id carried by the token, or raise InvalidToken."""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidToken(str(e)) from e

        subject = payload.get("sub")
        if subject is None or "exp" not in payload:
            raise InvalidToken("token payload is incomplete")
        try:
            return int(subject)
        except (TypeError, ValueError) as e:
            raise InvalidToken("token subject is not a user id") from e


# PUBLIC_INTERFACE
def parse_token_cookie(cookie_header: Optional[str]) -> str:
    """
    Extract the session token from a Cookie header.
    Each pair is split on its first '=' so base64 padding in values survives.
    """
    if not cookie_header:
        raise MissingCookie("Missing cookie.")

    for pair in cookie_header.split(";"):
        name, sep, value = pair.strip().partition("=")
        if sep and name == TOKEN_COOKIE and value:
            return value
    raise MissingToken("Missing token.")

