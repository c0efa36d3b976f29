from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import func

from app.db.session import Base
from app.models.common import generate_uuid

class Admin(Base):
    __tablename__ = "admins"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String(100))
    phone_number = Column(String)
    hashed_password = Column(String, nullable=False)
    is_validated = Column(Boolean, default=False, nullable=False)
    password_reset_token = Column(String, index=True)
    password_reset_expires = Column(DateTime)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
