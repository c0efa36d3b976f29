from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from app.schemas.common import CamelModel


class AdminCreate(CamelModel):
    name: Optional[str] = Field(None, max_length=100)
    email: EmailStr
    phone_number: Optional[str] = None


class AdminUpdate(CamelModel):
    name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6)


class AdminOut(CamelModel):
    id: str
    name: Optional[str] = None
    email: str
    phone_number: Optional[str] = None
    is_validated: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
