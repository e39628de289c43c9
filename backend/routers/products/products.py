from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from config import get_db
from models import Product
from utils.errors import InternalError
from utils.response_helpers import safe_model_validate
from routers.products.schemas import (
    ProductResponse, ProductListResponse, PricingTierResponse, PriceCalculationResponse
)
from .helpers import product_query, get_product_or_404, product_to_dict, select_tier
from typing import Optional
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


# =================
# CATALOG ROUTES (PUBLIC)
# =================

@router.get("/all", response_model=ProductListResponse)
async def get_all_products(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    category: Optional[str] = Query(None),
    vendor_id: Optional[uuid.UUID] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Browse the catalog, newest first"""
    try:
        query = product_query()
        count_query = select(func.count(Product.id))

        if category:
            query = query.where(Product.category == category)
            count_query = count_query.where(Product.category == category)
        if vendor_id:
            query = query.where(Product.vendor_id == vendor_id)
            count_query = count_query.where(Product.vendor_id == vendor_id)

        total_result = await db.execute(count_query)
        total = total_result.scalar()

        offset = (page - 1) * limit
        query = query.offset(offset).limit(limit).order_by(Product.created_at.desc(), Product.name)

        result = await db.execute(query)
        products = result.scalars().all()

        return ProductListResponse(
            products=[safe_model_validate(ProductResponse, product_to_dict(p)) for p in products],
            page=page,
            limit=limit,
            total=total
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error listing products: {str(e)}")
        raise InternalError("Failed to get products")


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_db)
):
    """Get product details by ID"""
    try:
        product = await get_product_or_404(db, product_id)
        return safe_model_validate(ProductResponse, product_to_dict(product))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting product: {str(e)}")
        raise InternalError("Failed to get product")


@router.get("/{product_id}/price", response_model=PriceCalculationResponse)
async def calculate_price(
    product_id: uuid.UUID,
    quantity: int = Query(..., gt=0),
    db: AsyncSession = Depends(get_db)
):
    """Tier price for a quantity of this product"""
    try:
        product = await get_product_or_404(db, product_id)
        tier = select_tier(product.tiers, quantity)

        return PriceCalculationResponse(
            product_id=str(product.id),
            quantity=quantity,
            unit_price=tier.unit_price,
            total_price=tier.unit_price * quantity,
            tier_used=safe_model_validate(PricingTierResponse, tier),
            meets_moq=quantity >= product.moq
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error calculating price: {str(e)}")
        raise InternalError("Failed to calculate price")
