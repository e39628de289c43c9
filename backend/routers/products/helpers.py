from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from config import get_supabase_storage, SUPABASE_STORAGE_BUCKET
from models import Product, PricingTier
from utils.errors import NotFoundError, ValidationError, InternalError
from typing import Iterable, List, Optional, Union
import logging
import os
import re
import uuid

logger = logging.getLogger(__name__)

OUT_OF_STOCK = "Out of Stock"
LOW_STOCK = "Low Stock"
IN_STOCK = "In Stock"
LOW_STOCK_THRESHOLD = 50

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]
MAX_IMAGE_SIZE = 5 * 1024 * 1024

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_NUMBER = re.compile(r"\d+(?:\.\d+)?|\.\d+")


def parse_stock_quantity(stock: Union[str, int, float, None]) -> int:
    """Leading integer of the stock text; anything unreadable counts as 0"""
    if stock is None:
        return 0
    if isinstance(stock, (int, float)):
        return int(stock)
    match = _LEADING_INT.match(stock)
    return int(match.group(1)) if match else 0


def derive_stock_status(stock: Union[str, int, float, None]) -> str:
    quantity = parse_stock_quantity(stock)
    if quantity <= 0:
        return OUT_OF_STOCK
    if quantity < LOW_STOCK_THRESHOLD:
        return LOW_STOCK
    return IN_STOCK


def parse_price(price: Union[str, int, float, None]) -> Optional[float]:
    """Numeric part of a display price such as "$8.50/m" """
    if price is None:
        return None
    if isinstance(price, (int, float)):
        return float(price)
    match = _NUMBER.search(price.replace(",", ""))
    return float(match.group(0)) if match else None


def select_tier(tiers: Iterable[PricingTier], quantity: int) -> PricingTier:
    """Highest tier whose minimum the quantity reaches; below every minimum, the lowest tier"""
    sorted_tiers = sorted(tiers, key=lambda t: t.min_quantity)
    if not sorted_tiers:
        raise ValidationError("No pricing information available for this product")

    applicable_tier = sorted_tiers[0]
    for tier in sorted_tiers:
        if quantity >= tier.min_quantity:
            applicable_tier = tier
        else:
            break

    return applicable_tier


def price_for_quantity(tiers: Iterable[PricingTier], quantity: int) -> float:
    return select_tier(tiers, quantity).unit_price


def product_query():
    return select(Product).options(selectinload(Product.tiers), selectinload(Product.vendor))


async def get_product_or_404(db: AsyncSession, product_id: uuid.UUID, vendor_id: Optional[uuid.UUID] = None) -> Product:
    """Load a product with tiers and vendor; optionally only if owned by vendor_id"""
    query = product_query().where(Product.id == product_id).execution_options(populate_existing=True)
    if vendor_id is not None:
        query = query.where(Product.vendor_id == vendor_id)
    result = await db.execute(query)
    product = result.scalar_one_or_none()
    if not product:
        raise NotFoundError("Product")
    return product


def product_to_dict(product: Product) -> dict:
    data = {k: v for k, v in product.__dict__.items() if not k.startswith('_')}
    data['stock_status'] = derive_stock_status(product.stock)
    data['tiers'] = list(product.tiers)
    vendor = product.__dict__.get('vendor')
    if vendor is not None:
        data['vendor'] = {
            'id': vendor.id,
            'name': vendor.name,
            'email': vendor.email,
            'company_name': vendor.company_name,
        }
    return data


class ProductHelpers:
    """Product image storage operations"""

    def __init__(self):
        self._storage = None

    @property
    def storage(self):
        if self._storage is None:
            self._storage = get_supabase_storage()
        return self._storage

    async def upload_product_image(self, product_id: uuid.UUID, file: UploadFile) -> str:
        """
        Upload a product image to Supabase Storage and return the public URL
        """
        if file.content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError(f"File type {file.content_type} not allowed", field="file")

        file_content = await file.read()
        if len(file_content) > MAX_IMAGE_SIZE:
            raise ValidationError("File size must be less than 5MB", field="file")

        file_extension = os.path.splitext(file.filename)[1] if file.filename else '.jpg'
        unique_filename = f"products/{product_id}/{uuid.uuid4()}{file_extension}"

        try:
            bucket = self.storage.from_(SUPABASE_STORAGE_BUCKET)
            bucket.upload(
                path=unique_filename,
                file=file_content,
                file_options={"content-type": file.content_type}
            )
            public_url = bucket.get_public_url(unique_filename)
        except Exception as upload_error:
            logger.error(f"Product image upload failed: {str(upload_error)}")
            raise InternalError("Failed to upload image")

        logger.info(f"Uploaded image for product {product_id}: {unique_filename}")
        return public_url


product_helpers = ProductHelpers()
