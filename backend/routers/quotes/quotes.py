from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db
from dependencies.rbac import require_buyer, require_vendor
from routers.auth.schemas import Principal
from routers.orders.schemas import OrderResponse
from utils.errors import InternalError
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .helpers import quote_helpers
from .schemas import (
    QuoteStatus, QuoteRequest, QuoteRespond, QuoteResponse, QuoteListResponse, QuoteAcceptResponse
)
from typing import Optional
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Quotes"])


# =================
# BUYER ROUTES
# =================

@router.post("/request", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED)
async def request_quote(
    quote_data: QuoteRequest,
    current_user: Principal = Depends(require_buyer),
    db: AsyncSession = Depends(get_db)
):
    """Request a quote from the product's vendor"""
    try:
        quote = await quote_helpers.request_quote(
            db, current_user, quote_data.product_id, quote_data.quantity, quote_data.message
        )
        return safe_model_validate(QuoteResponse, quote)

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error requesting quote: {str(e)}")
        raise InternalError("Failed to request quote")


@router.get("/buyer", response_model=QuoteListResponse)
async def get_buyer_quotes(
    status: Optional[QuoteStatus] = Query(None),
    current_user: Principal = Depends(require_buyer),
    db: AsyncSession = Depends(get_db)
):
    """Quotes requested by the current buyer, newest first"""
    try:
        quotes = await quote_helpers.list_buyer_quotes(db, current_user, status)
        return QuoteListResponse(quotes=safe_model_validate_list(QuoteResponse, quotes), total=len(quotes))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting buyer quotes: {str(e)}")
        raise InternalError("Failed to get quotes")


@router.post("/{quote_id}/accept", response_model=QuoteAcceptResponse)
async def accept_quote(
    quote_id: uuid.UUID,
    current_user: Principal = Depends(require_buyer),
    db: AsyncSession = Depends(get_db)
):
    """Accept a quoted price; creates a confirmed order"""
    try:
        quote, order = await quote_helpers.accept_quote(db, current_user, quote_id)
        return QuoteAcceptResponse(
            message="Quote accepted and order created",
            quote=safe_model_validate(QuoteResponse, quote),
            order=safe_model_validate(OrderResponse, order)
        )

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error accepting quote: {str(e)}")
        raise InternalError("Failed to accept quote")


# =================
# VENDOR ROUTES
# =================

@router.get("/vendor", response_model=QuoteListResponse)
async def get_vendor_quotes(
    status: Optional[QuoteStatus] = Query(None),
    current_user: Principal = Depends(require_vendor),
    db: AsyncSession = Depends(get_db)
):
    """RFQs received by the current vendor, newest first"""
    try:
        quotes = await quote_helpers.list_vendor_quotes(db, current_user, status)
        return QuoteListResponse(quotes=safe_model_validate_list(QuoteResponse, quotes), total=len(quotes))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting vendor quotes: {str(e)}")
        raise InternalError("Failed to get quotes")


@router.patch("/{quote_id}/respond", response_model=QuoteResponse)
async def respond_to_quote(
    quote_id: uuid.UUID,
    response_data: QuoteRespond,
    current_user: Principal = Depends(require_vendor),
    db: AsyncSession = Depends(get_db)
):
    """Quote a unit price, or decline with status 'declined'"""
    try:
        quote = await quote_helpers.respond_to_quote(
            db,
            current_user,
            quote_id,
            vendor_price=response_data.vendor_price,
            vendor_response=response_data.vendor_response,
            status=response_data.status
        )
        return safe_model_validate(QuoteResponse, quote)

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error responding to quote: {str(e)}")
        raise InternalError("Failed to respond to quote")


@router.post("/{quote_id}/decline", response_model=QuoteResponse)
async def decline_quote(
    quote_id: uuid.UUID,
    current_user: Principal = Depends(require_vendor),
    db: AsyncSession = Depends(get_db)
):
    """Decline an open quote"""
    try:
        quote = await quote_helpers.decline_quote(db, current_user, quote_id)
        return safe_model_validate(QuoteResponse, quote)

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error declining quote: {str(e)}")
        raise InternalError("Failed to decline quote")
