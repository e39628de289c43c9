from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from models import Order
from routers.auth.schemas import Principal
from routers.products.helpers import get_product_or_404, price_for_quantity
from utils.errors import NotFoundError, ValidationError
from .schemas import OrderStatus, OrderCreate, OrderStatusUpdate
from datetime import datetime, timezone
from typing import List, Optional, Tuple
import logging
import uuid

logger = logging.getLogger(__name__)


def order_query():
    return select(Order).options(
        selectinload(Order.product),
        selectinload(Order.buyer),
        selectinload(Order.vendor),
    )


class OrderHelpers:
    """Order fulfillment tracking"""

    async def get_order(
        self,
        db: AsyncSession,
        order_id: uuid.UUID,
        principal: Optional[Principal] = None,
        vendor_only: bool = False
    ) -> Order:
        """
        Load an order with its product and parties

        With a principal the order must belong to it (as buyer or vendor, or
        only as vendor with vendor_only); anything else is not found.
        """
        query = order_query().where(Order.id == order_id).execution_options(populate_existing=True)
        if principal is not None:
            if vendor_only:
                query = query.where(Order.vendor_id == principal.user_id)
            else:
                query = query.where(
                    or_(Order.buyer_id == principal.user_id, Order.vendor_id == principal.user_id)
                )

        result = await db.execute(query)
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order")
        return order

    async def create_order(self, db: AsyncSession, principal: Principal, order_data: OrderCreate) -> Order:
        """Direct purchase without a quote; confirmed immediately"""
        product = await get_product_or_404(db, order_data.product_id)

        unit_price = order_data.unit_price
        if unit_price is None:
            unit_price = price_for_quantity(product.tiers, order_data.quantity)
        if unit_price < 0:
            raise ValidationError("Unit price cannot be negative", field="unit_price")

        shipping_address = None
        if order_data.shipping_address is not None:
            shipping_address = order_data.shipping_address.model_dump()

        order = Order(
            buyer_id=principal.user_id,
            vendor_id=product.vendor_id,
            product_id=product.id,
            quantity=order_data.quantity,
            unit_price=unit_price,
            total_price=unit_price * order_data.quantity,
            status=OrderStatus.CONFIRMED.value,
            shipping_address=shipping_address
        )
        db.add(order)
        await db.commit()

        logger.info(f"Order {order.id} created by {principal.user_id}: {order.quantity} x {unit_price}")
        return await self.get_order(db, order.id)

    async def update_status(
        self,
        db: AsyncSession,
        principal: Principal,
        order_id: uuid.UUID,
        status_update: OrderStatusUpdate
    ) -> Order:
        """Vendor fulfillment update; only supplied fields change and any status may follow any other"""
        order = await self.get_order(db, order_id, principal, vendor_only=True)

        update_data = status_update.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            return order

        previous_status = order.status
        if 'status' in update_data:
            order.status = OrderStatus(update_data.pop('status')).value
        for field, value in update_data.items():
            setattr(order, field, value)

        order.updated_at = datetime.now(timezone.utc)
        await db.commit()

        logger.info(f"Order {order_id}: {previous_status} -> {order.status} by vendor {principal.user_id}")
        return await self.get_order(db, order_id)

    async def _list_orders(
        self,
        db: AsyncSession,
        party_column,
        party_id: uuid.UUID,
        page: int,
        limit: int,
        status: Optional[OrderStatus]
    ) -> Tuple[List[Order], int]:
        query = order_query().where(party_column == party_id)
        count_query = select(func.count(Order.id)).where(party_column == party_id)
        if status is not None:
            query = query.where(Order.status == OrderStatus(status).value)
            count_query = count_query.where(Order.status == OrderStatus(status).value)

        total_result = await db.execute(count_query)
        total = total_result.scalar() or 0

        offset = (page - 1) * limit
        result = await db.execute(query.order_by(Order.created_at.desc()).offset(offset).limit(limit))
        return list(result.scalars().all()), total

    async def list_vendor_orders(
        self,
        db: AsyncSession,
        principal: Principal,
        page: int = 1,
        limit: int = 20,
        status: Optional[OrderStatus] = None
    ) -> Tuple[List[Order], int]:
        return await self._list_orders(db, Order.vendor_id, principal.user_id, page, limit, status)

    async def list_buyer_orders(
        self,
        db: AsyncSession,
        principal: Principal,
        page: int = 1,
        limit: int = 20,
        status: Optional[OrderStatus] = None
    ) -> Tuple[List[Order], int]:
        return await self._list_orders(db, Order.buyer_id, principal.user_id, page, limit, status)


order_helpers = OrderHelpers()
