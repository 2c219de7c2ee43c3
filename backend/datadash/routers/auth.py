# datadash/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from datadash.db.session import require_db
from datadash.errors import ConflictError, ValidationError
from datadash.models.user import User
from datadash.schemas.auth import LoginIn, RefreshIn, SignupIn, TokenPair
from datadash.core.security import (
    verify_password,
    hash_password,
    create_access,
    create_refresh,
    signup_problems,
    subject_from,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _tokens(email: str) -> TokenPair:
    return TokenPair(
        access_token=create_access(email),
        refresh_token=create_refresh(email),
    )


@router.post("/login", response_model=TokenPair)
def login(body: LoginIn, db: Session = Depends(require_db)):
    email = body.email.lower()
    user = db.query(User).filter(func.lower(User.email) == email).first()
    if not user or not user.is_active or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _tokens(user.email)


@router.post("/signup", response_model=TokenPair, status_code=status.HTTP_201_CREATED)
def signup(body: SignupIn, db: Session = Depends(require_db)):
    email = body.email.lower()
    username = body.username.strip().lower()

    problems = signup_problems(email, username, body.password)
    if problems:
        raise ValidationError("Validation failed", details=problems)

    if db.query(User).filter(User.email == email).first():
        raise ConflictError(
            "Email already registered",
            code="EMAIL_TAKEN",
            details={"email": "This email is already in use"},
        )
    if db.query(User).filter(User.username == username).first():
        raise ConflictError(
            "Username taken",
            code="USERNAME_TAKEN",
            details={"username": "This username is already in use"},
        )

    user = User(email=email, username=username, password_hash=hash_password(body.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return _tokens(user.email)


@router.post("/refresh", response_model=TokenPair)
def refresh(body: RefreshIn):
    # Public endpoint. Validates refresh token from body.
    try:
        email = subject_from(body.refresh_token, "refresh")
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return _tokens(email)
