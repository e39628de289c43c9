from sqlalchemy import (
    String,
    Text,
    DateTime,
    CheckConstraint,
    UniqueConstraint,
    Index,
    text,
    ForeignKey,
    Float,
    Integer,
    JSON,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.ext.declarative import declarative_base
from typing import Optional, List
import uuid

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON everywhere else (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class User(Base):
    """
    Marketplace account. The role column is the tag of the buyer / vendor / admin variant.
    """
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('buyer', 'vendor', 'admin')", name="users_role_check"),
        UniqueConstraint("email", name="users_email_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="buyer", nullable=False)
    company_name: Mapped[Optional[str]] = mapped_column(String(200))

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )


class Product(Base):
    """
    Products listed by vendors
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("moq > 0", name="moq_positive_check"),
        Index("products_vendor_id_idx", "vendor_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    vendor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    # Basic Product Information
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Trade terms
    unit: Mapped[str] = mapped_column(String(50), default="unit", nullable=False)  # kg, piece, meter, etc.
    moq: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    lead_time: Mapped[Optional[str]] = mapped_column(String(100))  # e.g. "10-15 days"
    location: Mapped[Optional[str]] = mapped_column(String(200))

    images: Mapped[Optional[List[str]]] = mapped_column(JSONType)  # Array of image URLs

    # Inventory list fields, edited inline by the vendor
    price: Mapped[Optional[str]] = mapped_column(String(50))  # Display price, e.g. "$8.50/m"
    stock: Mapped[Optional[str]] = mapped_column(String(50))  # Numeric-as-text

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    # Relationships
    vendor: Mapped["User"] = relationship("User", foreign_keys=[vendor_id])
    tiers: Mapped[List["PricingTier"]] = relationship(
        "PricingTier",
        cascade="all, delete-orphan",
        order_by="PricingTier.min_quantity"
    )


class PricingTier(Base):
    """
    Quantity price breaks for a product
    Example: 100+ units = $9.50/unit "Standard", 1000+ units = $8.75/unit "Bulk"
    """
    __tablename__ = "pricing_tiers"
    __table_args__ = (
        CheckConstraint("min_quantity > 0", name="min_quantity_positive_check"),
        CheckConstraint("unit_price >= 0", name="unit_price_non_negative_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False
    )

    min_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    label: Mapped[Optional[str]] = mapped_column(String(100))


class Quote(Base):
    """
    Request for quote raised by a buyer against one vendor's product
    """
    __tablename__ = "quotes"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="quote_quantity_positive_check"),
        CheckConstraint(
            "status IN ('pending', 'quoted', 'negotiating', 'accepted', 'declined', 'expired')",
            name="quote_status_check",
        ),
        Index("quotes_vendor_id_idx", "vendor_id"),
        Index("quotes_buyer_id_idx", "buyer_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Participants
    buyer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False
    )
    vendor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    message: Mapped[Optional[str]] = mapped_column(Text)

    # Vendor response, NULL until the vendor quotes
    vendor_price: Mapped[Optional[float]] = mapped_column(Float)
    total_price: Mapped[Optional[float]] = mapped_column(Float)
    vendor_response: Mapped[Optional[str]] = mapped_column(Text)

    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    expires_at: Mapped[Optional[DateTime]] = mapped_column(DateTime(True))

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    # Relationships
    buyer: Mapped["User"] = relationship("User", foreign_keys=[buyer_id])
    vendor: Mapped["User"] = relationship("User", foreign_keys=[vendor_id])
    product: Mapped["Product"] = relationship("Product")


class Order(Base):
    """
    Orders placed directly by buyers or created by accepting a quote
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive_check"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'processing', 'shipped', 'delivered', 'cancelled')",
            name="order_status_check",
        ),
        Index("orders_vendor_id_idx", "vendor_id"),
        Index("orders_buyer_id_idx", "buyer_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Order participants
    buyer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False
    )
    vendor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False
    )

    # Product details
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False
    )
    quote_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("quotes.id", ondelete="SET NULL"),
        unique=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    total_price: Mapped[float] = mapped_column(Float, nullable=False)

    # Order status
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)  # "pending", "confirmed", "processing", "shipped", "delivered", "cancelled"

    # Delivery details
    shipping_address: Mapped[Optional[dict]] = mapped_column(JSONType)  # street / city / state / country / zip_code
    tracking_number: Mapped[Optional[str]] = mapped_column(String(100))
    carrier: Mapped[Optional[str]] = mapped_column(String(100))
    estimated_delivery: Mapped[Optional[DateTime]] = mapped_column(DateTime(True))

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    # Relationships
    buyer: Mapped["User"] = relationship("User", foreign_keys=[buyer_id])
    vendor: Mapped["User"] = relationship("User", foreign_keys=[vendor_id])
    product: Mapped["Product"] = relationship("Product")
