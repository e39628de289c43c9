from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db
from routers.auth.auth import get_current_user
from routers.auth.schemas import Principal
from dependencies.rbac import require_buyer, require_vendor
from utils.errors import InternalError
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .helpers import order_helpers
from .schemas import OrderCreate, OrderStatus, OrderStatusUpdate, OrderResponse, OrderListResponse
from typing import Optional
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("/create", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    current_user: Principal = Depends(require_buyer),
    db: AsyncSession = Depends(get_db)
):
    """
    Direct purchase of a product without a quote
    """
    try:
        order = await order_helpers.create_order(db, current_user, order_data)
        return safe_model_validate(OrderResponse, order)

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error creating order: {str(e)}")
        raise InternalError("Failed to create order")


@router.get("/buyer", response_model=OrderListResponse)
async def get_buyer_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    current_user: Principal = Depends(require_buyer),
    db: AsyncSession = Depends(get_db)
):
    """Orders placed by the current buyer"""
    try:
        orders, total = await order_helpers.list_buyer_orders(db, current_user, page, limit, status)
        return OrderListResponse(
            orders=safe_model_validate_list(OrderResponse, orders),
            page=page,
            limit=limit,
            total=total
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting buyer orders: {str(e)}")
        raise InternalError("Failed to get orders")


@router.get("/vendor", response_model=OrderListResponse)
async def get_vendor_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    current_user: Principal = Depends(require_vendor),
    db: AsyncSession = Depends(get_db)
):
    """Orders received by the current vendor"""
    try:
        orders, total = await order_helpers.list_vendor_orders(db, current_user, page, limit, status)
        return OrderListResponse(
            orders=safe_model_validate_list(OrderResponse, orders),
            page=page,
            limit=limit,
            total=total
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting vendor orders: {str(e)}")
        raise InternalError("Failed to get orders")


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Order details, visible to its buyer and vendor"""
    try:
        order = await order_helpers.get_order(db, order_id, current_user)
        return safe_model_validate(OrderResponse, order)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting order: {str(e)}")
        raise InternalError("Failed to get order")


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    status_update: OrderStatusUpdate,
    current_user: Principal = Depends(require_vendor),
    db: AsyncSession = Depends(get_db)
):
    """Update fulfillment status and tracking details"""
    try:
        order = await order_helpers.update_status(db, current_user, order_id, status_update)
        return safe_model_validate(OrderResponse, order)

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error updating order status: {str(e)}")
        raise InternalError("Failed to update order")
