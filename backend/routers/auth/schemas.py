from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from enum import Enum
import uuid


class UserRole(str, Enum):
    BUYER = "buyer"
    VENDOR = "vendor"
    ADMIN = "admin"


class Principal(BaseModel):
    """Session object resolved from the bearer token, passed explicitly to every operation"""
    user_id: uuid.UUID
    role: UserRole
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


# Request schemas
class UserSignup(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole = UserRole.BUYER
    company_name: Optional[str] = Field(None, max_length=200)

class UserLogin(BaseModel):
    email: EmailStr
    password: str
    role: Optional[UserRole] = None  # Portal the user is logging into

class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    company_name: Optional[str] = Field(None, max_length=200)

class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str


# Response schemas
class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    company_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class UserSummary(BaseModel):
    """Embedded party on quotes and orders"""
    id: str
    name: str
    email: Optional[str] = None
    company_name: Optional[str] = None

class SignupResponse(BaseModel):
    message: str
    user: UserResponse

class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

class ProfileUpdateResponse(BaseModel):
    message: str
    user: UserResponse
