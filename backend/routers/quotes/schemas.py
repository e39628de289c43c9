from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from routers.auth.schemas import UserSummary
from routers.products.schemas import ProductSummary
from routers.orders.schemas import OrderResponse
import uuid


class QuoteStatus(str, Enum):
    PENDING = "pending"
    QUOTED = "quoted"
    NEGOTIATING = "negotiating"  # reserved for a counter-offer operation
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


TERMINAL_QUOTE_STATUSES = (QuoteStatus.ACCEPTED, QuoteStatus.DECLINED, QuoteStatus.EXPIRED)


# Request schemas
class QuoteRequest(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., gt=0)
    message: Optional[str] = Field(None, max_length=2000)

class QuoteRespond(BaseModel):
    vendor_price: Optional[float] = Field(None, ge=0)
    vendor_response: Optional[str] = Field(None, max_length=2000)
    status: QuoteStatus = QuoteStatus.QUOTED


# Response schemas
class QuoteResponse(BaseModel):
    id: str
    buyer_id: str
    vendor_id: str
    product_id: str
    quantity: int
    message: Optional[str] = None
    vendor_price: Optional[float] = None
    total_price: Optional[float] = None
    vendor_response: Optional[str] = None
    status: QuoteStatus
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    product: Optional[ProductSummary] = None
    buyer: Optional[UserSummary] = None
    vendor: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class QuoteListResponse(BaseModel):
    quotes: List[QuoteResponse]
    total: int

class QuoteAcceptResponse(BaseModel):
    message: str
    quote: QuoteResponse
    order: OrderResponse

class QuoteExpiryResponse(BaseModel):
    message: str
    expired_count: int
