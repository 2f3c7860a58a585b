from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bootcamp_api.core.security import hash_password, verify_password
from bootcamp_api.models.user import ROLE_USER, User


class EmailAlreadyRegistered(Exception):
    pass


def normalize_email(raw: str | None) -> str:
    return str(raw or "").strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(User).filter(func.lower(User.email) == normalized).first()


def register_user(db: Session, *, name: str, email: str, password: str, role: str = ROLE_USER) -> User:
    normalized = normalize_email(email)
    if get_user_by_email(db, normalized) is not None:
        raise EmailAlreadyRegistered(normalized)
    user = User(
        name=name.strip(),
        email=normalized,
        role=role,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise EmailAlreadyRegistered(normalized) from exc
    db.refresh(user)
    return user


def authenticate(db: Session, email: str, password: str) -> User | None:
    user = get_user_by_email(db, email)
    if user is None or not user.is_active:
        return None
    if not verify_password(str(password or ""), str(user.password_hash or "")):
        return None
    return user
