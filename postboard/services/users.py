import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from postboard.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ViolationCollector,
)
from postboard.models.user import User
from postboard.services.security import get_password_hash, verify_password
from postboard.services import validation

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> dict:
    """Public view of a user. Never includes the password hash."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


def register(db: Session, name, email, password) -> User:
    """
    Create a user with a hashed password.
    Raises ValidationError (every bad field listed) or ConflictError on a taken email.
    """
    errors = ViolationCollector()
    if not validation.validate_length(name, validation.NAME_MIN, validation.NAME_MAX):
        errors.add("name", f"Name must be {validation.NAME_MIN}-{validation.NAME_MAX} characters")
    if not validation.validate_email(email):
        errors.add("email", "Please provide a valid email address")
    if not validation.validate_length(password, validation.PASSWORD_MIN, validation.PASSWORD_MAX):
        errors.add("password", f"Password must be {validation.PASSWORD_MIN}-{validation.PASSWORD_MAX} characters")
    errors.raise_if_any()

    email = validation.normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")

    user = User(
        name=name.strip(),
        email=email,
        password_hash=get_password_hash(password),
        role="user",
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise ConflictError("User with this email already exists")
    db.refresh(user)

    logger.info("Registered user %s", user.id)
    return user


def authenticate(db: Session, email, password) -> User:
    """Login check: 400 malformed, 404 unknown email, 401 wrong password."""
    errors = ViolationCollector()
    if not validation.validate_email(email):
        errors.add("email", "Please provide a valid email address")
    if not validation.validate_length(password, validation.PASSWORD_MIN, validation.PASSWORD_MAX):
        errors.add("password", f"Password must be {validation.PASSWORD_MIN}-{validation.PASSWORD_MAX} characters")
    errors.raise_if_any()

    user = db.query(User).filter(User.email == validation.normalize_email(email)).first()
    if not user:
        raise NotFoundError("User not found")

    if not verify_password(password, user.password_hash):
        logger.info("Rejected login for user %s", user.id)
        raise AuthenticationError("Invalid credentials", reason="bad_credentials")

    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user
