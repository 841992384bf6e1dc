# smartq/backend/app/models/user.py
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from ..db import Base

ROLE_ADMIN = "admin"
ROLE_BARBER = "barber"


class StaffUser(Base):
    """
    Admin / barber credentials. Only used for authentication,
    never part of the queue itself.
    """
    __tablename__ = "staff_users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, server_default=ROLE_BARBER)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
