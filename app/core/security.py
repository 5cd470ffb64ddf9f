"""Account credentials: bcrypt password hashes and signed access tokens.

Tokens carry the account id in ``sub`` plus the email and role at issue time.
Decoding requires ``exp`` and ``sub`` and returns the claims as a
``TokenPayload``, or None for anything that does not verify.
"""
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from pydantic import ValidationError

from app.core.config import settings
from app.schemas.auth import TokenPayload

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("ascii")


def verify_password(password: str, password_hash: str | None) -> bool:
    """False for a missing or malformed hash instead of raising."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        return False


def create_access_token(
    user_id: int,
    email: str | None = None,
    role: str | None = None,
    expires_in: timedelta | None = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_in or timedelta(minutes=settings.jwt_expire_minutes)
    claims = TokenPayload(sub=str(user_id), email=email, role=role).model_dump(exclude_none=True)
    claims.update(iat=issued_at, exp=issued_at + lifetime)
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload | None:
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
        return TokenPayload.model_validate(claims)
    except (jwt.PyJWTError, ValidationError):
        return None
