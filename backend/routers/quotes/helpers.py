"""
Quote lifecycle

pending -> quoted | declined | expired
quoted -> quoted (re-quote) | negotiating | accepted | declined | expired
negotiating -> accepted | declined | expired

Accepting a quote is the only write that spans two aggregates: the quote
moves to accepted and its order is inserted in the same transaction.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.orm import selectinload
from config import QUOTE_VALIDITY_DAYS
from models import Quote, Order, Product
from routers.auth.schemas import Principal
from routers.orders.helpers import order_helpers
from routers.orders.schemas import OrderStatus
from utils.errors import NotFoundError, ValidationError, ConflictError, InvalidStateError
from .schemas import QuoteStatus, TERMINAL_QUOTE_STATUSES
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
import logging
import uuid

logger = logging.getLogger(__name__)

RESPONSE_STATUSES = (QuoteStatus.QUOTED, QuoteStatus.DECLINED)
EXPIRABLE_STATUSES = (QuoteStatus.PENDING, QuoteStatus.QUOTED)


def quote_query():
    return select(Quote).options(
        selectinload(Quote.product),
        selectinload(Quote.buyer),
        selectinload(Quote.vendor),
    )


def is_terminal(status: str) -> bool:
    return QuoteStatus(status) in TERMINAL_QUOTE_STATUSES


class QuoteHelpers:
    """Operations of the quote lifecycle; every call gets the caller's Principal"""

    async def get_quote(
        self,
        db: AsyncSession,
        quote_id: uuid.UUID,
        buyer_id: Optional[uuid.UUID] = None,
        vendor_id: Optional[uuid.UUID] = None
    ) -> Quote:
        """Load a quote, scoped to a buyer or vendor; a foreign quote is simply not found"""
        query = quote_query().where(Quote.id == quote_id).execution_options(populate_existing=True)
        if buyer_id is not None:
            query = query.where(Quote.buyer_id == buyer_id)
        if vendor_id is not None:
            query = query.where(Quote.vendor_id == vendor_id)

        result = await db.execute(query)
        quote = result.scalar_one_or_none()
        if not quote:
            raise NotFoundError("Quote")
        return quote

    async def request_quote(
        self,
        db: AsyncSession,
        principal: Principal,
        product_id: uuid.UUID,
        quantity: int,
        message: Optional[str] = None
    ) -> Quote:
        """Open an RFQ against the product's vendor"""
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0", field="quantity")

        result = await db.execute(select(Product).where(Product.id == product_id))
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product")

        quote = Quote(
            buyer_id=principal.user_id,
            vendor_id=product.vendor_id,
            product_id=product.id,
            quantity=quantity,
            message=message,
            status=QuoteStatus.PENDING.value,
            expires_at=datetime.now(timezone.utc) + timedelta(days=QUOTE_VALIDITY_DAYS)
        )
        db.add(quote)
        await db.commit()

        logger.info(f"Quote {quote.id} requested by {principal.user_id} for product {product.id} x{quantity}")
        return await self.get_quote(db, quote.id)

    async def respond_to_quote(
        self,
        db: AsyncSession,
        principal: Principal,
        quote_id: uuid.UUID,
        vendor_price: Optional[float] = None,
        vendor_response: Optional[str] = None,
        status: QuoteStatus = QuoteStatus.QUOTED
    ) -> Quote:
        """Vendor prices the quote (or declines it); total is recomputed from the price"""
        status = QuoteStatus(status)
        if status not in RESPONSE_STATUSES:
            raise ValidationError("Response status must be 'quoted' or 'declined'", field="status")
        if vendor_price is not None and vendor_price < 0:
            raise ValidationError("Price cannot be negative", field="vendor_price")

        quote = await self.get_quote(db, quote_id, vendor_id=principal.user_id)

        if is_terminal(quote.status):
            raise ConflictError(f"Quote is already {quote.status}")

        price = vendor_price if vendor_price is not None else quote.vendor_price
        if status == QuoteStatus.QUOTED and price is None:
            raise ValidationError("A price is required to quote", field="vendor_price")

        if vendor_price is not None:
            quote.vendor_price = vendor_price
            quote.total_price = vendor_price * quote.quantity
        if vendor_response is not None:
            quote.vendor_response = vendor_response

        previous_status = quote.status
        quote.status = status.value
        quote.updated_at = datetime.now(timezone.utc)
        await db.commit()

        logger.info(f"Quote {quote_id}: {previous_status} -> {status.value} by vendor {principal.user_id}")
        return await self.get_quote(db, quote_id)

    async def decline_quote(self, db: AsyncSession, principal: Principal, quote_id: uuid.UUID) -> Quote:
        quote = await self.get_quote(db, quote_id, vendor_id=principal.user_id)

        if is_terminal(quote.status):
            raise ConflictError(f"Quote is already {quote.status}")

        previous_status = quote.status
        quote.status = QuoteStatus.DECLINED.value
        quote.updated_at = datetime.now(timezone.utc)
        await db.commit()

        logger.info(f"Quote {quote_id}: {previous_status} -> declined by vendor {principal.user_id}")
        return await self.get_quote(db, quote_id)

    async def accept_quote(self, db: AsyncSession, principal: Principal, quote_id: uuid.UUID) -> Tuple[Quote, Order]:
        """
        Accept a quoted RFQ and create its order

        The status flip is a compare-and-swap on status = 'quoted', so a second
        accept (or a decline that landed first) finds no row to update and
        fails without creating an order. Both writes commit together.
        """
        quote = await self.get_quote(db, quote_id, buyer_id=principal.user_id)

        if quote.status != QuoteStatus.QUOTED.value:
            raise InvalidStateError("Quote", quote.status, [QuoteStatus.QUOTED.value])

        try:
            now = datetime.now(timezone.utc)
            result = await db.execute(
                update(Quote)
                .where(Quote.id == quote.id)
                .where(Quote.status == QuoteStatus.QUOTED.value)
                .values(status=QuoteStatus.ACCEPTED.value, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                current = await self.get_quote(db, quote_id)
                raise InvalidStateError("Quote", current.status, [QuoteStatus.QUOTED.value])

            order = Order(
                buyer_id=quote.buyer_id,
                vendor_id=quote.vendor_id,
                product_id=quote.product_id,
                quote_id=quote.id,
                quantity=quote.quantity,
                unit_price=quote.vendor_price,
                total_price=quote.total_price,
                status=OrderStatus.CONFIRMED.value
            )
            db.add(order)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(f"Quote {quote_id} accepted by buyer {principal.user_id}; order {order.id} confirmed")

        accepted = await self.get_quote(db, quote_id)
        created = await order_helpers.get_order(db, order.id)
        return accepted, created

    async def expire_stale_quotes(self, db: AsyncSession, now: Optional[datetime] = None) -> int:
        """Flip pending/quoted quotes past expires_at to expired; returns how many changed"""
        now = now or datetime.now(timezone.utc)
        result = await db.execute(
            update(Quote)
            .where(Quote.status.in_([s.value for s in EXPIRABLE_STATUSES]))
            .where(Quote.expires_at.is_not(None))
            .where(Quote.expires_at < now)
            .values(status=QuoteStatus.EXPIRED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

        count = result.rowcount or 0
        logger.info(f"Expired {count} stale quotes")
        return count

    async def list_vendor_quotes(
        self,
        db: AsyncSession,
        principal: Principal,
        status: Optional[QuoteStatus] = None
    ) -> List[Quote]:
        query = quote_query().where(Quote.vendor_id == principal.user_id)
        if status is not None:
            query = query.where(Quote.status == QuoteStatus(status).value)
        result = await db.execute(query.order_by(Quote.created_at.desc()))
        return list(result.scalars().all())

    async def list_buyer_quotes(
        self,
        db: AsyncSession,
        principal: Principal,
        status: Optional[QuoteStatus] = None
    ) -> List[Quote]:
        query = quote_query().where(Quote.buyer_id == principal.user_id)
        if status is not None:
            query = query.where(Quote.status == QuoteStatus(status).value)
        result = await db.execute(query.order_by(Quote.created_at.desc()))
        return list(result.scalars().all())


quote_helpers = QuoteHelpers()
