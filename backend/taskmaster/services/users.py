from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from taskmaster.core.security import hash_password, verify_password
from taskmaster.models.enums import UserRole
from taskmaster.models.user import User


def authenticate_user(db: Session, username: str, password: str) -> User:
    user = db.query(User).filter(User.username == username).first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return user


def create_user(
    db: Session,
    *,
    username: str,
    password: str,
    display_name: str | None = None,
    role: UserRole = UserRole.USER,
) -> User:
    exists = db.query(User).filter(User.username == username).first()
    if exists:
        return exists
    user = User(username=username, display_name=display_name, password_hash=hash_password(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
