from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict
from routers.auth.schemas import UserRole, UserResponse


class AdminUserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole
    company_name: Optional[str] = Field(None, max_length=200)

class AdminUserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    company_name: Optional[str] = Field(None, max_length=200)
    role: Optional[UserRole] = None


class AdminUserResponse(BaseModel):
    message: str
    user: UserResponse

class UserListResponse(BaseModel):
    users: List[UserResponse]
    page: int
    limit: int
    total: int


class AdminStatsResponse(BaseModel):
    total_users: int
    total_buyers: int
    total_vendors: int
    total_admins: int
    total_products: int
    quotes_by_status: Dict[str, int]
    orders_by_status: Dict[str, int]
