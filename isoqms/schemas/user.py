"""
User Schemas
"""
from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime


class UserResponse(BaseModel):
    """User response schema (excludes sensitive data)."""
    id: str
    email: EmailStr
    name: str
    is_active: bool
    is_super_admin: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserBrief(BaseModel):
    id: str
    email: str
    name: str

    class Config:
        from_attributes = True
