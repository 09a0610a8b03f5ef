import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models
import schemas
from errors import AuthError, NotFound, ValidationError
from security import check_password_dummy, hash_password, issue_token, verify_password

logger = logging.getLogger(__name__)


def register(db: Session, data: schemas.RegisterRequest) -> models.UserModel:
    """Create an account. The very first account becomes the admin."""
    email_taken = db.query(models.UserModel).filter(models.UserModel.email == data.email).first()
    if email_taken:
        raise ValidationError("Email already in use")

    role = models.ROLE_ADMIN if db.query(models.UserModel).count() == 0 else models.ROLE_USER
    user = models.UserModel(
        username=data.username,
        email=data.email,
        password_hash=hash_password(data.password),
        role=role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise ValidationError("Email already in use") from exc
    db.refresh(user)
    logger.info("User registered: %s (role=%s)", user.email, user.role)
    return user


def authenticate(db: Session, email: str, password: str, secret: str):
    """Return ``(token, expires_at, user)`` for valid credentials."""
    user = db.query(models.UserModel).filter(models.UserModel.email == email).first()
    if user is None:
        check_password_dummy(password)
        raise AuthError("Invalid email or password")
    if not verify_password(password, user.password_hash):
        raise AuthError("Invalid email or password")

    token, expires_at = issue_token(user.id, user.role, secret)
    logger.info("User %s logged in", user.id)
    return token, expires_at, user


def get_user(db: Session, user_id: str) -> models.UserModel:
    user = db.get(models.UserModel, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def list_users(db: Session):
    return db.query(models.UserModel).order_by(models.UserModel.created_at).all()


def ensure_user_exists(db: Session, user_id: str) -> models.UserModel:
    user = db.get(models.UserModel, user_id)
    if user is None:
        raise ValidationError(f"Unknown user: {user_id}")
    return user
