"""
Password hashing, bearer token issue/verify, and token -> identity resolution.

🔒 SECURITY: tokens are plain bearer credentials. There is no revocation list,
so a token stays valid until its `exp` claim passes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt  # PyJWT
from passlib.context import CryptContext
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from postboard import config
from postboard.errors import AuthenticationError, InternalError
from postboard.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, threaded explicitly into service functions."""
    id: int
    email: str
    name: str


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Constant-time check; a wrong password or unreadable hash is just False."""
    if not plain_password or not password_hash:
        return False
    try:
        return pwd_context.verify(plain_password, password_hash)
    except (ValueError, TypeError):
        return False


def issue_token(user: User, expires_in: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    exp = now + (expires_in if expires_in is not None else timedelta(hours=config.TOKEN_EXPIRE_HOURS))
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired", reason="expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token", reason="invalid_signature")


def resolve_identity(db: Session, token: Optional[str]) -> Identity:
    """
    Authorization gate: bearer token -> Identity.

    Missing token, bad signature, expiry and a vanished user are all 401.
    A storage failure while looking the user up is a 500, never anonymous.
    """
    if not token:
        raise AuthenticationError("Access token required", reason="missing_token")

    claims = decode_token(token)
    try:
        user_id = int(claims.get("sub", ""))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token", reason="invalid_signature")

    try:
        user = db.get(User, user_id)
    except SQLAlchemyError:
        logger.exception("User lookup failed while verifying token")
        raise InternalError("Authentication failed")

    if user is None:
        raise AuthenticationError("Invalid token - user not found", reason="identity_not_found")

    return Identity(id=user.id, email=user.email, name=user.name)
