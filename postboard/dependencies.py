# postboard/dependencies.py
import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from postboard.database import get_db
from postboard.errors import AuthenticationError
from postboard.services.security import Identity, resolve_identity

logger = logging.getLogger(__name__)

# Security scheme. auto_error=False so a missing header reaches our own 401 body.
bearer = HTTPBearer(auto_error=False, description="Bearer token issued by /api/auth/login")


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db),
) -> Identity:
    """
    Protected routes. Missing/invalid/expired token or unknown user -> 401.
    🔒 SECURITY: the caller's id comes from the verified token, never from the body.
    """
    return resolve_identity(db, _token(credentials))


def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db),
) -> Optional[Identity]:
    """
    Anonymous-tolerant routes. No token, or a token that fails verification,
    means an anonymous caller who only sees published content.
    Storage failures still propagate as InternalError.
    """
    token = _token(credentials)
    if not token:
        return None
    try:
        return resolve_identity(db, token)
    except AuthenticationError as e:
        logger.debug("Treating caller as anonymous: %s", e.message)
        return None
