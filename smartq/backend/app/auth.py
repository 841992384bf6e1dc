# smartq/backend/app/auth.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from . import config
from .db import get_db
from .errors import AuthError
from .models.user import ROLE_ADMIN, StaffUser

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

bearer_scheme = HTTPBearer(auto_error=False)


def get_password_hash(password: str) -> str:
    """Bcrypt hash (cost factor 12), salt included in the hash string."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the table
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = dict(data)
    payload.update({"iat": now, "exp": now + expires_delta})
    return jwt.encode(payload, config.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Returns the claims of a valid token.
    Raises AuthError(403) for bad signatures, expiry or missing claims.
    """
    try:
        claims = jwt.decode(
            token,
            config.SECRET_KEY,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired", status_code=403)
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token", status_code=403)
    return claims


def user_from_token(db: Session, token: str) -> StaffUser:
    claims = decode_access_token(token)
    user = db.query(StaffUser).filter(StaffUser.username == claims["sub"]).first()
    if user is None:
        raise AuthError("Invalid token", status_code=403)
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> StaffUser:
    if credentials is None or not credentials.credentials:
        raise AuthError("Access token required", status_code=401)
    return user_from_token(db, credentials.credentials)


def require_admin(current_user: StaffUser = Depends(get_current_user)) -> StaffUser:
    if current_user.role != ROLE_ADMIN:
        raise AuthError("Admin access required", status_code=403)
    return current_user


def authenticate(
    db: Session, username: str, password: str, roles: Iterable[str]
) -> Optional[StaffUser]:
    user = db.query(StaffUser).filter(StaffUser.username == username).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    if user.role not in roles:
        return None
    return user


def seed_staff_user(db: Session, username: str, password: str, role: str) -> None:
    """Create the account if the username is free. Existing accounts are left alone."""
    if not username or not password:
        return
    if db.query(StaffUser).filter_by(username=username).first():
        return
    db.add(
        StaffUser(
            username=username,
            password_hash=get_password_hash(password),
            role=role,
        )
    )
    db.commit()
    logger.info("Seeded %s account '%s'", role, username)
