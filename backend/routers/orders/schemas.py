from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from routers.auth.schemas import UserSummary
from routers.products.schemas import ProductSummary
import uuid


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ShippingAddress(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None


class OrderCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(gt=0)
    unit_price: Optional[float] = Field(None, ge=0)  # tier price when omitted
    shipping_address: Optional[ShippingAddress] = None


class OrderStatusUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    tracking_number: Optional[str] = Field(None, max_length=100)
    carrier: Optional[str] = Field(None, max_length=100)
    estimated_delivery: Optional[datetime] = None


class OrderResponse(BaseModel):
    id: str
    buyer_id: str
    vendor_id: str
    product_id: str
    quote_id: Optional[str] = None
    quantity: int
    unit_price: float
    total_price: float
    status: OrderStatus
    shipping_address: Optional[ShippingAddress] = None
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    product: Optional[ProductSummary] = None
    buyer: Optional[UserSummary] = None
    vendor: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    page: int
    limit: int
    total: int
