from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from config import get_db
from models import User
from utils.errors import (
    AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError, InternalError
)
from utils.response_helpers import user_to_dict
from .schemas import (
    UserSignup,
    UserLogin,
    UserRole,
    Principal,
    AuthResponse,
    SignupResponse,
    UserResponse,
    ProfileUpdate,
    ProfileUpdateResponse,
    PasswordUpdate,
)
from .helpers import auth_helpers
from typing import Optional
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

security = HTTPBearer(auto_error=False)

async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """Resolve the bearer token into a Principal"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access denied: no token provided")

    claims = auth_helpers.verify_token(credentials.credentials)

    try:
        user_id = uuid.UUID(claims["sub"])
    except ValueError:
        raise AuthenticationError("Invalid token: malformed subject")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        logger.warning(f"Token subject {user_id} no longer exists")
        raise AuthenticationError("Invalid token: unknown user")

    # Stored role is authoritative
    if claims["role"] and claims["role"] != user.role:
        logger.warning(f"Token role {claims['role']} no longer matches user {user_id} ({user.role})")
        raise AuthenticationError("Invalid token: role has changed, please log in again")

    principal = Principal(user_id=user.id, role=user.role, email=user.email)

    request.state.current_user = principal
    return principal


async def get_user_or_404(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User")
    return user


async def ensure_email_available(db: AsyncSession, email: str, exclude_user_id: Optional[uuid.UUID] = None):
    query = select(User).where(User.email == email)
    if exclude_user_id is not None:
        query = query.where(User.id != exclude_user_id)
    result = await db.execute(query)
    if result.scalar_one_or_none():
        raise ConflictError("Email already in use")


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: UserSignup,
    db: AsyncSession = Depends(get_db)
):
    """Register a buyer or vendor account"""
    try:
        if user_data.role == UserRole.ADMIN:
            raise ValidationError("Admin accounts can only be created by an administrator", field="role")

        await ensure_email_available(db, user_data.email)

        new_user = User(
            name=user_data.name,
            email=user_data.email,
            password_hash=auth_helpers.hash_password(user_data.password),
            role=user_data.role.value,
            company_name=user_data.company_name
        )

        db.add(new_user)
        await db.commit()
        await db.refresh(new_user)

        logger.info(f"New {new_user.role} account created: {new_user.id}")

        return SignupResponse(
            message="User created successfully",
            user=UserResponse.model_validate(user_to_dict(new_user))
        )

    except HTTPException:
        await db.rollback()
        raise
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already in use")
    except Exception as e:
        await db.rollback()
        logger.error(f"Signup failed: {str(e)}")
        raise InternalError("Signup failed")

@router.post("/login", response_model=AuthResponse)
async def login(
    user_data: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    try:
        result = await db.execute(select(User).where(User.email == user_data.email))
        user = result.scalar_one_or_none()

        if user is None or not auth_helpers.verify_password(user_data.password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        if user_data.role and user.role != user_data.role.value:
            raise AuthorizationError(
                detail=f"Access denied. You are trying to log into the {user_data.role.value} portal with a {user.role} account."
            )

        access_token = auth_helpers.create_access_token(user.id, user.role, user.email)
        logger.info(f"User {user.id} logged in as {user.role}")

        return AuthResponse(
            access_token=access_token,
            user=UserResponse.model_validate(user_to_dict(user))
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login failed: {str(e)}")
        raise InternalError("Login failed")

@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the current user's profile"""
    user = await get_user_or_404(db, current_user.user_id)
    return UserResponse.model_validate(user_to_dict(user))

@router.patch("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update name, email or company name of the current user"""
    try:
        user = await get_user_or_404(db, current_user.user_id)

        update_data = profile_data.model_dump(exclude_unset=True)
        if update_data.get("email"):
            await ensure_email_available(db, update_data["email"], exclude_user_id=user.id)

        for field, value in update_data.items():
            # Name and email can't be blanked; company name can
            if value is None and field != "company_name":
                continue
            setattr(user, field, value)

        user.updated_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(user)

        return ProfileUpdateResponse(
            message="Profile updated successfully",
            user=UserResponse.model_validate(user_to_dict(user))
        )

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Profile update failed: {str(e)}")
        raise InternalError("Failed to update profile")

@router.patch("/password")
async def update_password(
    password_data: PasswordUpdate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        if not password_data.current_password or not password_data.new_password:
            raise ValidationError("Current password and new password are required")

        if len(password_data.new_password) < 6:
            raise ValidationError("Password must be at least 6 characters", field="new_password")

        if len(password_data.new_password.encode("utf-8")) > 72:
            raise ValidationError("Password must be at most 72 bytes", field="new_password")

        user = await get_user_or_404(db, current_user.user_id)

        if not auth_helpers.verify_password(password_data.current_password, user.password_hash):
            raise ValidationError("Current password is incorrect", field="current_password")

        user.password_hash = auth_helpers.hash_password(password_data.new_password)
        user.updated_at = datetime.now(timezone.utc)
        await db.commit()

        return {"message": "Password updated successfully"}

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Password update failed: {str(e)}")
        raise InternalError("Failed to update password")
