from __future__ import annotations

from sqlalchemy.orm import Session

from taskmaster.core.security import hash_password
from taskmaster.models.enums import UserRole
from taskmaster.models.user import User
from taskmaster.services.users import create_user

# Local/dev accounts only.
DEV_USERS = (
    ("admin", "Planning Admin", "admin1234", UserRole.ADMIN),
    ("planner", "Operations Planner", "planner1234", UserRole.USER),
)


def upsert_user(db: Session, *, username: str, display_name: str, password: str, role: UserRole) -> None:
    """Existing users get password/role reset so local dev can recover credentials without wiping the DB."""
    user = db.query(User).filter(User.username == username).first()
    if user:
        user.password_hash = hash_password(password)
        user.display_name = display_name
        user.role = role
        user.is_active = True
        db.commit()
        return
    create_user(db, username=username, password=password, display_name=display_name, role=role)


def ensure_seeded(db: Session) -> None:
    if db.query(User).first():
        return
    for username, display_name, password, role in DEV_USERS:
        upsert_user(db, username=username, display_name=display_name, password=password, role=role)


if __name__ == "__main__":
    from taskmaster.db.session import SessionLocal

    db = SessionLocal()
    try:
        ensure_seeded(db)
        print("Seeded initial users.")
    finally:
        db.close()
