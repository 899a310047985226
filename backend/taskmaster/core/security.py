from __future__ import annotations

import datetime as dt
import secrets
from dataclasses import dataclass

import bcrypt
from jose import jwt

from taskmaster.core.config import settings

MIN_PASSWORD_LENGTH = 8


def hash_password(plain: str) -> str:
    if not plain or len(plain) < MIN_PASSWORD_LENGTH:
        raise ValueError("Password too short")
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


def create_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def constant_time_equals(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return secrets.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


@dataclass(frozen=True)
class SessionClaims:
    sub: str
    exp: int


def create_access_token(*, subject: str, now: dt.datetime | None = None) -> str:
    issued = now or dt.datetime.now(dt.timezone.utc)
    exp = issued + dt.timedelta(minutes=settings.jwt_expires_minutes)
    return jwt.encode({"sub": subject, "exp": int(exp.timestamp())}, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> SessionClaims:
    data = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    return SessionClaims(sub=str(data["sub"]), exp=int(data["exp"]))
