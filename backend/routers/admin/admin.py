from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from config import get_db
from models import User, Product, Quote, Order
from dependencies.rbac import require_admin
from routers.auth.auth import get_user_or_404, ensure_email_available
from routers.auth.helpers import auth_helpers
from routers.auth.schemas import Principal, UserRole, UserResponse
from routers.quotes.helpers import quote_helpers
from routers.quotes.schemas import QuoteExpiryResponse
from utils.errors import ConflictError, ValidationError, InternalError
from utils.response_helpers import user_to_dict
from .schemas import (
    AdminUserCreate, AdminUserUpdate, AdminUserResponse, UserListResponse, AdminStatsResponse
)
from typing import Optional
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


def user_to_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user_to_dict(user))


# =================
# USER MANAGEMENT ROUTES
# =================

@router.post("/users", response_model=AdminUserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: AdminUserCreate,
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Admin only: Create an account of any role
    """
    try:
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

        logger.info(f"Admin {current_user.user_id} created {new_user.role} account {new_user.id}")

        return AdminUserResponse(message="User created successfully", user=user_to_response(new_user))

    except HTTPException:
        await db.rollback()
        raise
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already in use")
    except Exception as e:
        await db.rollback()
        logger.error(f"Create user failed: {str(e)}")
        raise InternalError("Failed to create user")


@router.get("/users", response_model=UserListResponse)
async def list_all_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[UserRole] = Query(None),
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Admin only: List all users, newest first, with optional role filter
    """
    try:
        query = select(User)
        count_query = select(func.count(User.id))
        if role:
            query = query.where(User.role == role.value)
            count_query = count_query.where(User.role == role.value)

        total_result = await db.execute(count_query)
        total = total_result.scalar() or 0

        offset = (page - 1) * limit
        result = await db.execute(query.order_by(User.created_at.desc()).offset(offset).limit(limit))
        users = result.scalars().all()

        return UserListResponse(
            users=[user_to_response(user) for user in users],
            page=page,
            limit=limit,
            total=total
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"List users failed: {str(e)}")
        raise InternalError("Failed to retrieve users")


@router.get("/users/role/{role}", response_model=UserListResponse)
async def list_users_by_role(
    role: UserRole,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Admin only: Users with the given role
    """
    return await list_all_users(page=page, limit=limit, role=role, current_user=current_user, db=db)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await get_user_or_404(db, user_id)
    return user_to_response(user)


@router.patch("/users/{user_id}", response_model=AdminUserResponse)
async def update_user(
    user_id: uuid.UUID,
    user_update: AdminUserUpdate,
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Admin only: Update name, email, company name or role
    """
    try:
        user = await get_user_or_404(db, user_id)

        update_data = user_update.model_dump(exclude_unset=True)
        if update_data.get("email"):
            await ensure_email_available(db, update_data["email"], exclude_user_id=user.id)

        old_role = user.role
        for field, value in update_data.items():
            if value is None and field != "company_name":
                continue
            if field == "role":
                value = UserRole(value).value
            setattr(user, field, value)

        user.updated_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(user)

        if user.role != old_role:
            logger.info(f"Admin {current_user.user_id} changed role of {user_id} from {old_role} to {user.role}")

        return AdminUserResponse(message="User updated successfully", user=user_to_response(user))

    except HTTPException:
        await db.rollback()
        raise
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already in use")
    except Exception as e:
        await db.rollback()
        logger.error(f"Update user failed: {str(e)}")
        raise InternalError("Failed to update user")


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: uuid.UUID,
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Admin only: Delete an account
    """
    try:
        if user_id == current_user.user_id:
            raise ValidationError("Admins cannot delete their own account")

        user = await get_user_or_404(db, user_id)
        await db.delete(user)
        await db.commit()

        logger.info(f"Admin {current_user.user_id} deleted user {user_id}")
        return {"message": "User deleted successfully"}

    except HTTPException:
        await db.rollback()
        raise
    except IntegrityError:
        await db.rollback()
        raise ConflictError("User has products with open quotes or orders and cannot be deleted")
    except Exception as e:
        await db.rollback()
        logger.error(f"Delete user failed: {str(e)}")
        raise InternalError("Failed to delete user")


# =================
# PLATFORM ROUTES
# =================

@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Admin only: Account counts by role, catalog size, quotes and orders by status
    """
    try:
        role_result = await db.execute(select(User.role, func.count(User.id)).group_by(User.role))
        by_role = {role: count for role, count in role_result.all()}

        product_result = await db.execute(select(func.count(Product.id)))

        quote_result = await db.execute(select(Quote.status, func.count(Quote.id)).group_by(Quote.status))
        order_result = await db.execute(select(Order.status, func.count(Order.id)).group_by(Order.status))

        return AdminStatsResponse(
            total_users=sum(by_role.values()),
            total_buyers=by_role.get(UserRole.BUYER.value, 0),
            total_vendors=by_role.get(UserRole.VENDOR.value, 0),
            total_admins=by_role.get(UserRole.ADMIN.value, 0),
            total_products=product_result.scalar() or 0,
            quotes_by_status={s: c for s, c in quote_result.all()},
            orders_by_status={s: c for s, c in order_result.all()}
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get stats failed: {str(e)}")
        raise InternalError("Failed to get stats")


@router.post("/quotes/expire", response_model=QuoteExpiryResponse)
async def expire_quotes(
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Admin only: Mark pending and quoted RFQs past their expiry date as expired
    """
    try:
        count = await quote_helpers.expire_stale_quotes(db)
        return QuoteExpiryResponse(message=f"Expired {count} quotes", expired_count=count)

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Quote expiry failed: {str(e)}")
        raise InternalError("Failed to expire quotes")
