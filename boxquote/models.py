from sqlalchemy import Column, Integer, String, Float, DateTime, Date, Text, ForeignKey, Enum, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


# --- Enums ---

class QuoteStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


class OrderStatus(str, enum.Enum):
    PENDING_DEPOSIT = "pending_deposit"
    CONFIRMED = "confirmed"
    IN_PRODUCTION = "in_production"
    READY = "ready"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Forward workflow order; cancelled sits outside it.
ORDER_WORKFLOW = [
    OrderStatus.PENDING_DEPOSIT,
    OrderStatus.CONFIRMED,
    OrderStatus.IN_PRODUCTION,
    OrderStatus.READY,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]


class PublicQuoteStatus(str, enum.Enum):
    PENDING = "pending"
    CONTACTED = "contacted"
    CONVERTED = "converted"
    REJECTED = "rejected"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, enum.Enum):
    TRANSFERENCIA = "transferencia"
    CHEQUE = "cheque"
    EFECTIVO = "efectivo"
    ECHEQ = "echeq"


class Channel(str, enum.Enum):
    MANUAL = "manual"
    WEB = "web"
    PHONE = "phone"
    WHATSAPP = "whatsapp"
    EMAIL = "email"


# --- Pricing ---

class PricingConfig(Base):
    """Versioned, append-only pricing table. One active row without valid_until at a time."""
    __tablename__ = "pricing_config"

    id = Column(Integer, primary_key=True, index=True)
    price_per_m2_standard = Column(Float, nullable=False)
    price_per_m2_volume = Column(Float, nullable=False)
    volume_threshold_m2 = Column(Float, nullable=False)
    min_m2_per_model = Column(Float, nullable=False)
    price_per_m2_below_minimum = Column(Float, nullable=True)  # surcharge price, not a discount
    free_shipping_min_m2 = Column(Float, nullable=False)
    free_shipping_max_km = Column(Float, nullable=False)
    production_days_standard = Column(Integer, nullable=False)
    production_days_printing = Column(Integer, nullable=False)
    quote_validity_days = Column(Integer, nullable=False, default=7)
    valid_from = Column(DateTime, default=datetime.utcnow, nullable=False)
    valid_until = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class DocumentSequence(Base):
    """Per-document-type yearly counters behind quote and order numbers."""
    __tablename__ = "document_sequences"
    __table_args__ = (UniqueConstraint("doc_type", "year", name="uq_document_sequences_doc_type_year"),)

    id = Column(Integer, primary_key=True, index=True)
    doc_type = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    last_seq = Column(Integer, nullable=False, default=0)


# --- Clients ---

class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    company = Column(String)
    cuit = Column(String, index=True, nullable=True)  # digits only
    tax_condition = Column(String, default="consumidor_final")
    email = Column(String, index=True, nullable=True)  # lower-case
    phone = Column(String)  # digits only
    address = Column(Text)
    city = Column(String)
    province = Column(String)
    postal_code = Column(String)
    distance_km = Column(Float, nullable=True)
    source = Column(String, default="manual")  # 'manual' | 'web' | 'whatsapp' | 'phone'
    source_quote_id = Column(Integer, nullable=True)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    quotes = relationship("Quote", back_populates="client")
    orders = relationship("Order", back_populates="client")


# --- Internal quotes ---

class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, index=True)
    quote_number = Column(String, unique=True, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)
    status = Column(Enum(QuoteStatus), default=QuoteStatus.DRAFT, nullable=False)
    channel = Column(Enum(Channel), default=Channel.MANUAL, nullable=False)
    # Totals
    total_m2 = Column(Float, default=0.0)
    price_per_m2 = Column(Float, default=0.0)
    subtotal = Column(Float, default=0.0)
    has_printing = Column(Boolean, default=False)
    printing_colors = Column(Integer, default=0)
    printing_cost = Column(Float, default=0.0)
    has_die_cut = Column(Boolean, default=False)
    die_cut_cost = Column(Float, default=0.0)
    shipping_cost = Column(Float, default=0.0)
    shipping_notes = Column(Text)
    is_free_shipping = Column(Boolean, default=False)
    total = Column(Float, default=0.0)
    production_days = Column(Integer)
    estimated_delivery = Column(Date, nullable=True)
    valid_until = Column(Date, nullable=True)
    notes = Column(Text)
    internal_notes = Column(Text)
    # Lifecycle stamps, set once
    sent_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    expired_at = Column(DateTime, nullable=True)
    converted_to_order_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("Client", back_populates="quotes")
    items = relationship("QuoteItem", back_populates="quote", cascade="all, delete-orphan",
                         order_by="QuoteItem.id")


class QuoteItem(Base):
    __tablename__ = "quote_items"

    id = Column(Integer, primary_key=True, index=True)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=False)
    box_id = Column(Integer, nullable=True)  # catalogue box, None for custom sizes
    length_mm = Column(Integer, nullable=False)
    width_mm = Column(Integer, nullable=False)
    height_mm = Column(Integer, nullable=False)
    unfolded_width_mm = Column(Integer, nullable=False)
    unfolded_length_mm = Column(Integer, nullable=False)
    m2_per_box = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)
    total_m2 = Column(Float, nullable=False)
    is_custom = Column(Boolean, default=True)
    is_oversized = Column(Boolean, default=False)

    quote = relationship("Quote", back_populates="items")


# --- Orders ---

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, unique=True, nullable=False)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING_DEPOSIT, nullable=False)
    # Quoted area stays as history; delivered area is filled in by reconciliation
    total_m2 = Column(Float, default=0.0)
    delivered_m2 = Column(Float, nullable=True)
    price_per_m2 = Column(Float, default=0.0)
    subtotal = Column(Float, default=0.0)
    printing_cost = Column(Float, default=0.0)
    die_cut_cost = Column(Float, default=0.0)
    shipping_cost = Column(Float, default=0.0)
    total = Column(Float, default=0.0)
    # Payments (50% deposit, 50% balance on delivery)
    deposit_amount = Column(Float, default=0.0)
    deposit_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    deposit_method = Column(Enum(PaymentMethod), nullable=True)
    deposit_paid_at = Column(DateTime, nullable=True)
    balance_amount = Column(Float, default=0.0)
    balance_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    balance_method = Column(Enum(PaymentMethod), nullable=True)
    balance_paid_at = Column(DateTime, nullable=True)
    # Reconciliation
    quantities_confirmed = Column(Boolean, default=False, nullable=False)
    quantities_confirmed_at = Column(DateTime, nullable=True)
    # Status stamps
    confirmed_at = Column(DateTime, nullable=True)
    production_started_at = Column(DateTime, nullable=True)
    ready_at = Column(DateTime, nullable=True)
    shipped_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(Text)
    # Delivery
    delivery_address = Column(Text)
    delivery_city = Column(String)
    delivery_notes = Column(Text)
    estimated_delivery = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("Client", back_populates="orders")
    quote = relationship("Quote")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan",
                         order_by="OrderItem.id")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    length_mm = Column(Integer, nullable=False)
    width_mm = Column(Integer, nullable=False)
    height_mm = Column(Integer, nullable=False)
    m2_per_box = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)
    quantity_delivered = Column(Integer, nullable=True)  # set once, by reconciliation
    total_m2 = Column(Float, nullable=False)
    delivered_m2 = Column(Float, nullable=True)

    order = relationship("Order", back_populates="items")


# --- Public (web / phone) quotes ---

class PublicQuote(Base):
    """
    Lead (requested_contact=False, visitor only saw a price) or web quote
    (requested_contact=True, visitor asked to be contacted). One box per row.
    """
    __tablename__ = "public_quotes"

    id = Column(Integer, primary_key=True, index=True)
    # Requester
    requester_name = Column(String, nullable=False)
    requester_company = Column(String)
    requester_email = Column(String, index=True, nullable=False)  # lower-case
    requester_phone = Column(String)  # digits only
    requester_cuit = Column(String, nullable=True)  # digits only
    requester_tax_condition = Column(String, default="consumidor_final")
    # Address
    address = Column(Text)
    city = Column(String)
    province = Column(String, default="Buenos Aires")
    postal_code = Column(String)
    distance_km = Column(Float, nullable=True)
    is_free_shipping = Column(Boolean, default=False)
    # Box
    length_mm = Column(Integer, nullable=False)
    width_mm = Column(Integer, nullable=False)
    height_mm = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    has_printing = Column(Boolean, default=False)
    printing_colors = Column(Integer, default=0)
    # Computed
    sheet_width_mm = Column(Integer)
    sheet_length_mm = Column(Integer)
    sqm_per_box = Column(Float)
    total_sqm = Column(Float)
    price_per_m2 = Column(Float)
    unit_price = Column(Float)
    subtotal = Column(Float)
    estimated_days = Column(Integer)
    is_oversized = Column(Boolean, default=False)
    # Lifecycle
    status = Column(Enum(PublicQuoteStatus), default=PublicQuoteStatus.PENDING, nullable=False)
    requested_contact = Column(Boolean, default=False, nullable=False)
    source = Column(String, default="web")  # 'web' | 'phone' | 'whatsapp'
    is_below_minimum = Column(Boolean, default=False)
    accepted_below_minimum_terms = Column(Boolean, default=False)
    converted_at = Column(DateTime, nullable=True)
    converted_to_client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)
    converted_to_quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=True)
    # Metadata
    message = Column(Text)
    source_ip = Column(String)
    source_user_agent = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
