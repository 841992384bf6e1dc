# smartq/backend/app/api/v1/auth.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import authenticate, create_access_token
from ...db import get_db
from ...errors import AuthError
from ...models.user import ROLE_ADMIN, ROLE_BARBER
from ...schemas.auth import LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def _login(db: Session, payload: LoginRequest, roles) -> dict:
    user = authenticate(db, payload.username, payload.password, roles)
    if user is None:
        logger.info("Rejected login for '%s'", payload.username)
        raise AuthError("Invalid credentials", status_code=401)
    token = create_access_token({"sub": user.username, "role": user.role})
    return {"token": token, "admin": user}


@router.post("/admin/login", response_model=LoginResponse)
def admin_login(payload: LoginRequest, db: Session = Depends(get_db)):
    return _login(db, payload, roles=(ROLE_ADMIN,))


@router.post("/barber/login", response_model=LoginResponse)
def barber_login(payload: LoginRequest, db: Session = Depends(get_db)):
    # Admins can run the barber console too
    return _login(db, payload, roles=(ROLE_BARBER, ROLE_ADMIN))
