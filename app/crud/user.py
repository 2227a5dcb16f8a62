import secrets
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import update
from sqlalchemy.orm import Session
from app.models import models
from app.core.security import hash_password

def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()

def get_user_by_id(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()

def create_user(db: Session, username: str, email: str, password: str, role: str = "user") -> models.User:
    new_user = models.User(
        username=username,
        email=email,
        password=hash_password(password),
        role=role,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    return new_user

def username_taken(db: Session, username: str, exclude_user_id: int) -> bool:
    """Case-exact match against every other user's username"""
    return db.query(models.User.id).filter(
        models.User.username == username,
        models.User.id != exclude_user_id
    ).first() is not None

def email_taken(db: Session, email: str, exclude_user_id: int) -> bool:
    return db.query(models.User.id).filter(
        models.User.email == email,
        models.User.id != exclude_user_id
    ).first() is not None

def update_user_fields(db: Session, user: models.User, **fields) -> models.User:
    for key, value in fields.items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user

def set_password(db: Session, user: models.User, new_password: str) -> models.User:
    return update_user_fields(db, user, password=hash_password(new_password))

# 👇 Password reset ledger

def issue_reset_token(db: Session, user: models.User, expires_minutes: int) -> str:
    """Store a fresh random token and its expiry on the user row; returns the raw token"""
    token = secrets.token_hex(32)
    user.reset_password_token = token
    user.reset_password_expires = datetime.utcnow() + timedelta(minutes=expires_minutes)
    db.commit()
    return token

def reset_password_with_token(db: Session, token: str, new_password: str) -> bool:
    """
    Set the new password and clear the reset fields in one conditional UPDATE.
    Returns False when no user holds this token or it has expired; a token
    therefore works at most once.
    """
    hashed = hash_password(new_password)
    result = db.execute(
        update(models.User)
        .where(
            models.User.reset_password_token == token,
            models.User.reset_password_expires > datetime.utcnow(),
        )
        .values(
            password=hashed,
            reset_password_token=None,
            reset_password_expires=None,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        return False
    db.commit()
    return True

def ensure_admin(db: Session, email: str, password: str, username: str = "admin") -> models.User:
    """Create the configured admin account, or promote and re-key an existing one"""
    user = get_user_by_email(db, email)
    if not user:
        return create_user(db, username=username, email=email, password=password, role="admin")
    user.role = "admin"
    user.password = hash_password(password)
    db.commit()
    db.refresh(user)
    return user
