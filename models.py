from sqlalchemy import (
    Boolean,
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
    JSON
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.ext.declarative import declarative_base
from typing import Optional, List
from datetime import datetime, timezone
import uuid

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


ROLES = ("customer", "tailor", "admin")
ORDER_STATUSES = ("pending", "accepted", "rejected", "in_progress", "ready", "shipped", "delivered", "cancelled")
PAYMENT_STATUSES = ("pending", "captured", "failed", "refunded")
PAYMENT_TYPES = ("advance", "final", "full")
TRACKING_STATUSES = ("pending", "in_transit", "out_for_delivery", "delivered")
DISPUTE_STATUSES = ("open", "in_progress", "resolved", "closed")


def _in_check(column: str, values: tuple) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


class UserProfile(Base):
    """
    Identity record for a Supabase auth user.
    The role lives here as a single tagged value and selects which
    role-specific profile table holds the rest of the user's data.
    """
    __tablename__ = "user_profiles"
    __table_args__ = (
        CheckConstraint(_in_check("role", ROLES), name="user_profiles_role_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), unique=True, nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255))

    # Immutable once the profile exists
    role: Mapped[str] = mapped_column(String(20), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
        nullable=False
    )

    customer_profile: Mapped[Optional["CustomerProfile"]] = relationship(
        "CustomerProfile",
        back_populates="user_profile",
        uselist=False,
        cascade="all, delete-orphan"
    )
    tailor_profile: Mapped[Optional["TailorProfile"]] = relationship(
        "TailorProfile",
        back_populates="user_profile",
        uselist=False,
        cascade="all, delete-orphan"
    )
    admin_profile: Mapped[Optional["AdminProfile"]] = relationship(
        "AdminProfile",
        back_populates="user_profile",
        uselist=False,
        cascade="all, delete-orphan"
    )


class CustomerProfile(Base):
    """
    Customer-specific profile information
    """
    __tablename__ = "customer_profiles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), unique=True, nullable=False)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20))

    # Location Information
    address: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    state: Mapped[Optional[str]] = mapped_column(String(100))
    postal_code: Mapped[Optional[str]] = mapped_column(String(20))
    country: Mapped[str] = mapped_column(String(100), default="India", nullable=False)

    profile_image_url: Mapped[Optional[str]] = mapped_column(String(500))
    bio: Mapped[Optional[str]] = mapped_column(Text)
    preferred_style: Mapped[Optional[str]] = mapped_column(String(100))
    budget_preference: Mapped[Optional[str]] = mapped_column(String(100))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
        nullable=False
    )

    user_profile: Mapped["UserProfile"] = relationship("UserProfile", back_populates="customer_profile")


class TailorProfile(Base):
    """
    Tailor-specific profile information.
    rating, total_orders and total_customers are aggregates maintained outside
    the profile update path.
    """
    __tablename__ = "tailor_profiles"
    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="tailor_rating_range_check"),
        CheckConstraint("service_radius_km >= 0", name="tailor_service_radius_check"),
        Index("tailor_profiles_rating_idx", "rating"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), unique=True, nullable=False)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), default="", nullable=False)

    # Business Information
    business_name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    city: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    state: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), default="", nullable=False)
    country: Mapped[str] = mapped_column(String(100), default="India", nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    service_radius_km: Mapped[float] = mapped_column(Float, default=10.0, nullable=False)

    profile_image_url: Mapped[Optional[str]] = mapped_column(String(500))
    business_image_url: Mapped[Optional[str]] = mapped_column(String(500))
    bio: Mapped[Optional[str]] = mapped_column(Text)
    specializations: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    experience_years: Mapped[Optional[int]] = mapped_column(Integer)

    # Aggregates
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_orders: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_customers: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
        nullable=False
    )

    user_profile: Mapped["UserProfile"] = relationship("UserProfile", back_populates="tailor_profile")
    reviews: Mapped[List["TailorReview"]] = relationship(
        "TailorReview",
        back_populates="tailor",
        cascade="all, delete-orphan"
    )


class AdminProfile(Base):
    """
    Admin profile information
    """
    __tablename__ = "admin_profiles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), unique=True, nullable=False)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    permissions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
        nullable=False
    )

    user_profile: Mapped["UserProfile"] = relationship("UserProfile", back_populates="admin_profile")


class TailorReview(Base):
    """
    Customer reviews of tailors
    """
    __tablename__ = "tailor_reviews"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="review_rating_range_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tailor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tailor_profiles.id", ondelete="CASCADE"),
        nullable=False
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customer_profiles.id", ondelete="CASCADE"),
        nullable=False
    )
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="SET NULL")
    )

    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(200))
    comment: Mapped[Optional[str]] = mapped_column(Text)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
        nullable=False
    )

    tailor: Mapped["TailorProfile"] = relationship("TailorProfile", back_populates="reviews")


class Measurement(Base):
    """
    Body measurements saved by a customer, in centimetres
    """
    __tablename__ = "measurements"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customer_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    height_cm: Mapped[Optional[float]] = mapped_column(Float)
    bust_cm: Mapped[Optional[float]] = mapped_column(Float)
    waist_cm: Mapped[Optional[float]] = mapped_column(Float)
    hip_cm: Mapped[Optional[float]] = mapped_column(Float)
    shoulder_cm: Mapped[Optional[float]] = mapped_column(Float)
    arm_length_cm: Mapped[Optional[float]] = mapped_column(Float)
    inseam_cm: Mapped[Optional[float]] = mapped_column(Float)
    chest_cm: Mapped[Optional[float]] = mapped_column(Float)
    neck_cm: Mapped[Optional[float]] = mapped_column(Float)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
        nullable=False
    )


class DesignModel(Base):
    """
    Garment designs available in the virtual try-on catalogue
    """
    __tablename__ = "design_models"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    garment_type: Mapped[str] = mapped_column(String(100), nullable=False)
    model_url: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(500))
    color_options: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    size_range: Mapped[Optional[str]] = mapped_column(String(50))
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
        nullable=False
    )


class Order(Base):
    """
    Orders placed by customers with tailors
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(_in_check("status", ORDER_STATUSES), name="order_status_check"),
        CheckConstraint("total_amount >= 0", name="total_amount_non_negative_check"),
        Index("orders_customer_created_idx", "customer_id", "created_at"),
        Index("orders_tailor_created_idx", "tailor_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    # Order participants
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customer_profiles.id", ondelete="CASCADE"),
        nullable=False
    )
    tailor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tailor_profiles.id", ondelete="CASCADE"),
        nullable=False
    )

    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)

    # Amounts; advance_paid + final_paid is expected to stay within total_amount
    total_amount: Mapped[float] = mapped_column(Float, nullable=False)
    advance_paid: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    final_paid: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # Delivery details
    delivery_address: Mapped[Optional[str]] = mapped_column(Text)
    delivery_date_estimate: Mapped[Optional[datetime]] = mapped_column(DateTime(True))
    actual_delivery_date: Mapped[Optional[datetime]] = mapped_column(DateTime(True))

    notes: Mapped[Optional[str]] = mapped_column(Text)
    design_references: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    measurement_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("measurements.id", ondelete="SET NULL")
    )
    rejected_reason: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
        nullable=False
    )

    # Relationships
    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan"
    )
    status_history: Mapped[List["OrderStatusHistory"]] = relationship(
        "OrderStatusHistory",
        back_populates="order",
        cascade="all, delete-orphan"
    )
    payments: Mapped[List["Payment"]] = relationship("Payment", back_populates="order")
    tracking: Mapped[List["DeliveryTracking"]] = relationship(
        "DeliveryTracking",
        back_populates="order",
        cascade="all, delete-orphan"
    )


class OrderItem(Base):
    """
    Garments making up an order
    """
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive_check"),
        CheckConstraint("unit_price >= 0", name="unit_price_non_negative_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    garment_type: Mapped[str] = mapped_column(String(100), nullable=False)
    fabric_type: Mapped[Optional[str]] = mapped_column(String(100))
    color: Mapped[Optional[str]] = mapped_column(String(50))
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    design_model_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("design_models.id", ondelete="SET NULL")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    order: Mapped["Order"] = relationship("Order", back_populates="items")


class OrderStatusHistory(Base):
    """
    Append-only audit log of order status transitions
    """
    __tablename__ = "order_status_history"
    __table_args__ = (
        CheckConstraint(_in_check("status", ORDER_STATUSES), name="history_status_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))  # auth user id
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    order: Mapped["Order"] = relationship("Order", back_populates="status_history")


class Payment(Base):
    """
    Payments against an order, captured through Razorpay checkout
    """
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(_in_check("status", PAYMENT_STATUSES), name="payment_status_check"),
        CheckConstraint(_in_check("payment_type", PAYMENT_TYPES), name="payment_type_check"),
        CheckConstraint("amount > 0", name="payment_amount_positive_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customer_profiles.id", ondelete="CASCADE"),
        nullable=False
    )
    tailor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tailor_profiles.id", ondelete="CASCADE"),
        nullable=False
    )

    # Payment details
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(10), default="INR", nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), default="razorpay", nullable=False)
    payment_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Razorpay details
    razorpay_order_id: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    razorpay_payment_id: Mapped[Optional[str]] = mapped_column(String(100))
    razorpay_signature: Mapped[Optional[str]] = mapped_column(String(200))

    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    captured_at: Mapped[Optional[datetime]] = mapped_column(DateTime(True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
        nullable=False
    )

    order: Mapped["Order"] = relationship("Order", back_populates="payments")


class DeliveryTracking(Base):
    """
    Append-only delivery location log; the newest row is the current location
    """
    __tablename__ = "delivery_tracking"
    __table_args__ = (
        CheckConstraint(_in_check("status", TRACKING_STATUSES), name="tracking_status_check"),
        Index("delivery_tracking_order_created_idx", "order_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    updated_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)  # tailor profile id

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    order: Mapped["Order"] = relationship("Order", back_populates="tracking")


class Conversation(Base):
    """
    The single chat thread between one customer and one tailor
    """
    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("customer_id", "tailor_id", name="unique_conversation_per_pair"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customer_profiles.id", ondelete="CASCADE"),
        nullable=False
    )
    tailor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tailor_profiles.id", ondelete="CASCADE"),
        nullable=False
    )
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="SET NULL")
    )
    last_message_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    messages: Mapped[List["Message"]] = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan"
    )


class Message(Base):
    """
    Chat messages, ordered by creation time
    """
    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint(_in_check("sender_type", ("customer", "tailor")), name="message_sender_type_check"),
        Index("messages_conversation_created_idx", "conversation_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    sender_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    attachment_url: Mapped[Optional[str]] = mapped_column(String(500))
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    conversation: Mapped["Conversation"] = relationship("Conversation", back_populates="messages")


class Dispute(Base):
    """
    Disputes raised against an order by the customer or the tailor
    """
    __tablename__ = "disputes"
    __table_args__ = (
        CheckConstraint(_in_check("status", DISPUTE_STATUSES), name="dispute_status_check"),
        CheckConstraint(_in_check("raised_by", ("customer", "tailor")), name="dispute_raised_by_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customer_profiles.id", ondelete="CASCADE"),
        nullable=False
    )
    tailor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tailor_profiles.id", ondelete="CASCADE"),
        nullable=False
    )

    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="open", nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="medium", nullable=False)
    raised_by: Mapped[str] = mapped_column(String(20), nullable=False)
    resolution_notes: Mapped[Optional[str]] = mapped_column(Text)
    resolved_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
        nullable=False
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(True))

    messages: Mapped[List["DisputeMessage"]] = relationship(
        "DisputeMessage",
        back_populates="dispute",
        cascade="all, delete-orphan"
    )


class DisputeMessage(Base):
    """
    Threaded messages on a dispute, tagged by sender role
    """
    __tablename__ = "dispute_messages"
    __table_args__ = (
        CheckConstraint(_in_check("sender_type", ROLES), name="dispute_message_sender_type_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    dispute_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("disputes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    sender_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    dispute: Mapped["Dispute"] = relationship("Dispute", back_populates="messages")
