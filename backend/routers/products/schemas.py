from pydantic import BaseModel, Field, validator
from typing import Optional, List, Union
from datetime import datetime
from routers.auth.schemas import UserSummary


# Pricing Tier Schemas
class PricingTierCreate(BaseModel):
    min_quantity: int = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)
    label: Optional[str] = Field(None, max_length=100)

class PricingTierResponse(BaseModel):
    id: str
    product_id: str
    min_quantity: int
    unit_price: float
    label: Optional[str] = None

    class Config:
        from_attributes = True


def _validate_tiers(v):
    if v is None:
        return v
    minimums = [tier.min_quantity for tier in v]
    if len(minimums) != len(set(minimums)):
        raise ValueError('Pricing tiers cannot share a minimum quantity')
    return v


# Product Schemas
class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    price: Union[str, float] = Field(..., description='Display price, e.g. "$8.50/m" or 8.5')
    description: Optional[str] = None
    unit: str = Field("unit", min_length=1, max_length=50)
    moq: int = Field(1, gt=0)
    lead_time: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    images: Optional[List[str]] = None
    stock: Optional[Union[str, int]] = None
    tiers: Optional[List[PricingTierCreate]] = None

    @validator('tiers')
    def validate_tiers(cls, v):
        return _validate_tiers(v)

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Union[str, float]] = None
    description: Optional[str] = None
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    moq: Optional[int] = Field(None, gt=0)
    lead_time: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    images: Optional[List[str]] = None
    stock: Optional[Union[str, int]] = None
    tiers: Optional[List[PricingTierCreate]] = None

    @validator('tiers')
    def validate_tiers(cls, v):
        return _validate_tiers(v)

class ProductResponse(BaseModel):
    id: str
    vendor_id: str
    name: str
    category: str
    description: Optional[str] = None
    unit: str = "unit"
    moq: int = 1
    lead_time: Optional[str] = None
    location: Optional[str] = None
    images: Optional[List[str]] = None
    price: Optional[str] = None
    stock: Optional[str] = None
    stock_status: str
    tiers: List[PricingTierResponse] = []
    vendor: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ProductSummary(BaseModel):
    """Embedded product on quotes and orders"""
    id: str
    name: str
    category: str
    unit: str = "unit"
    images: Optional[List[str]] = None

class ProductListResponse(BaseModel):
    """Response schema for product listing"""
    products: List[ProductResponse]
    page: int
    limit: int
    total: int

class ProductImageUpload(BaseModel):
    """Response schema for product image upload"""
    image_url: str
    message: str


# Price calculation schemas
class PriceCalculationResponse(BaseModel):
    product_id: str
    quantity: int
    unit_price: float
    total_price: float
    tier_used: PricingTierResponse
    meets_moq: bool
