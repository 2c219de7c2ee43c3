# datadash/core/security.py
from __future__ import annotations

import datetime as dt
import re
from typing import Dict, List, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from datadash.config import get_settings
from datadash.db.session import get_db, reachable
from datadash.models.user import User

pwd_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer = HTTPBearer()

PASSWORD_MIN_LENGTH = 8
_USERNAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

def _ts(d: dt.datetime) -> int:
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    else:
        d = d.astimezone(dt.timezone.utc)
    return int(d.timestamp())

def hash_password(plain: str) -> str:
    return pwd_ctx.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    return pwd_ctx.verify(plain, hashed)


def password_problems(password: str) -> List[str]:
    """Every rule the password breaks, in a stable order."""
    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not re.search(r"[A-Z]", password):
        problems.append("Password must contain at least 1 uppercase letter")
    if not re.search(r"[a-z]", password):
        problems.append("Password must contain at least 1 lowercase letter")
    if not re.search(r"[0-9]", password):
        problems.append("Password must contain at least 1 number")
    if not re.search(r"[!@#$%^&*]", password):
        problems.append("Password must contain at least 1 special character (!@#$%^&*)")
    return problems


def signup_problems(email: str, username: str, password: str) -> Dict[str, str]:
    """Per-field first problem for a signup form; empty dict when acceptable."""
    errors: Dict[str, str] = {}
    if not _EMAIL_RE.match(email or ""):
        errors["email"] = "Invalid email format"
    if len(username) < 3:
        errors["username"] = "Username must be at least 3 characters"
    elif len(username) > 20:
        errors["username"] = "Username must be at most 20 characters"
    elif not _USERNAME_RE.match(username):
        errors["username"] = "Username can only contain letters, numbers, underscore, and dash"
    problems = password_problems(password)
    if problems:
        errors["password"] = problems[0]
    return errors


def _encode(sub: str, *, minutes: int | None = None, days: int | None = None, typ: str = "access") -> str:
    settings = get_settings()
    now = _utc_now()
    if minutes is None and days is None:
        minutes = 15
    exp_dt = now + (dt.timedelta(minutes=minutes) if minutes is not None else dt.timedelta(days=days))
    payload = {
        "sub": sub,
        "typ": typ,
        "iat": _ts(now),
        "exp": _ts(exp_dt),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def create_access(sub: str) -> str:
    return _encode(sub, minutes=get_settings().JWT_ACCESS_MIN, typ="access")

def create_refresh(sub: str) -> str:
    return _encode(sub, days=get_settings().JWT_REFRESH_DAYS, typ="refresh")

def decode_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError as e:
        raise ValueError(str(e))


def subject_from(token: str, typ: str) -> str:
    payload = decode_token(token)
    if payload.get("typ") != typ:
        raise ValueError(f"Not an {typ} token" if typ == "access" else f"Not a {typ} token")
    email = payload.get("sub")
    if not email:
        raise ValueError("Missing subject")
    return email


def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    db: Optional[Session] = Depends(get_db),
) -> User:
    """
    FastAPI dependency that validates an access token and returns an active user.

    Without a usable database (sample-data mode) the signed token is trusted
    as-is and a transient User is returned.
    """
    try:
        email = subject_from(creds.credentials, "access")
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    request.state.user = email
    if not reachable(db):
        return User(id=0, email=email, username=email.split("@")[0], password_hash="", is_active=True)

    user = db.query(User).filter(User.email == email, User.is_active.is_(True)).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return user
