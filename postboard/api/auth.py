from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from postboard.database import get_db
from postboard.dependencies import get_current_identity
from postboard.services import users
from postboard.services.security import Identity, issue_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    # All optional: the service reports every bad field in one 400
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account and hand back a 24h bearer token."""
    user = users.register(db, data.name, data.email, data.password)
    return {
        "message": "User registered successfully",
        "data": users.serialize_user(user),
        "token": issue_token(user),
    }


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = users.authenticate(db, data.email, data.password)
    return {
        "message": "Login successful",
        "data": users.serialize_user(user),
        "token": issue_token(user),
    }


@router.get("/me")
def me(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    return users.serialize_user(users.get_user(db, identity.id))
