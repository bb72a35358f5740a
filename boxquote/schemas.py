from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime
from .models import QuoteStatus, OrderStatus, PublicQuoteStatus, PaymentStatus, PaymentMethod, Channel


# --- Pricing config ---

class PricingConfigBase(BaseModel):
    price_per_m2_standard: float
    price_per_m2_volume: float
    volume_threshold_m2: float
    min_m2_per_model: float
    price_per_m2_below_minimum: Optional[float] = None
    free_shipping_min_m2: float
    free_shipping_max_km: float
    production_days_standard: int
    production_days_printing: int
    quote_validity_days: int = 7

class PricingConfigCreate(PricingConfigBase):
    pass

class PricingConfig(PricingConfigBase):
    id: int
    valid_from: datetime
    valid_until: Optional[datetime] = None
    is_active: bool
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True


# --- Clients ---

class ClientBase(BaseModel):
    name: str
    company: Optional[str] = None
    cuit: Optional[str] = None
    tax_condition: Optional[str] = "consumidor_final"
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    distance_km: Optional[float] = None
    source: Optional[str] = "manual"
    notes: Optional[str] = None

class ClientCreate(ClientBase):
    pass

class ClientUpdate(BaseModel):
    name: Optional[str] = None
    company: Optional[str] = None
    cuit: Optional[str] = None
    tax_condition: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    distance_km: Optional[float] = None
    notes: Optional[str] = None

class Client(ClientBase):
    id: int
    source_quote_id: Optional[int] = None
    created_at: datetime
    class Config:
        from_attributes = True


# --- Internal quotes ---

class BoxItemIn(BaseModel):
    length_mm: int
    width_mm: int
    height_mm: int
    quantity: int
    box_id: Optional[int] = None

class QuoteCalculateRequest(BaseModel):
    items: List[BoxItemIn] = []
    client_id: Optional[int] = None
    channel: Channel = Channel.MANUAL
    has_printing: bool = False
    printing_colors: int = 0
    printing_cost: float = 0.0
    has_die_cut: bool = False
    die_cut_cost: float = 0.0
    shipping_cost: float = 0.0
    distance_km: Optional[float] = None  # falls back to the client's distance

class QuoteCreate(QuoteCalculateRequest):
    notes: Optional[str] = None
    internal_notes: Optional[str] = None

class QuoteItemsUpdate(BaseModel):
    items: List[BoxItemIn] = []
    distance_km: Optional[float] = None

class QuoteItem(BaseModel):
    id: int
    box_id: Optional[int] = None
    length_mm: int
    width_mm: int
    height_mm: int
    unfolded_width_mm: int
    unfolded_length_mm: int
    m2_per_box: float
    quantity: int
    total_m2: float
    is_custom: bool
    is_oversized: bool
    class Config:
        from_attributes = True

class Quote(BaseModel):
    id: int
    quote_number: str
    client_id: Optional[int] = None
    status: QuoteStatus
    channel: Channel
    total_m2: float
    price_per_m2: float
    subtotal: float
    has_printing: bool
    printing_colors: int
    printing_cost: float
    has_die_cut: bool
    die_cut_cost: float
    shipping_cost: float
    shipping_notes: Optional[str] = None
    is_free_shipping: bool
    total: float
    production_days: Optional[int] = None
    estimated_delivery: Optional[date] = None
    valid_until: Optional[date] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    sent_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None
    converted_to_order_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    items: List[QuoteItem] = []
    class Config:
        from_attributes = True

class QuoteRejectRequest(BaseModel):
    reason: Optional[str] = None

class QuoteConvertRequest(BaseModel):
    delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_notes: Optional[str] = None


# --- Public quotes ---

class PublicQuoteSubmission(BaseModel):
    requester_name: Optional[str] = None
    requester_company: Optional[str] = None
    requester_email: Optional[str] = None
    requester_phone: Optional[str] = None
    requester_cuit: Optional[str] = None
    requester_tax_condition: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    distance_km: Optional[float] = None
    length_mm: Optional[int] = None
    width_mm: Optional[int] = None
    height_mm: Optional[int] = None
    quantity: Optional[int] = None
    has_printing: bool = False
    printing_colors: Optional[int] = 0
    message: Optional[str] = None
    source: str = "web"  # 'web' | 'phone' | 'whatsapp'


class PublicQuote(BaseModel):
    id: int
    requester_name: str
    requester_company: Optional[str] = None
    requester_email: str
    requester_phone: Optional[str] = None
    requester_cuit: Optional[str] = None
    requester_tax_condition: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    distance_km: Optional[float] = None
    is_free_shipping: bool
    length_mm: int
    width_mm: int
    height_mm: int
    quantity: int
    has_printing: bool
    printing_colors: Optional[int] = 0
    sheet_width_mm: Optional[int] = None
    sheet_length_mm: Optional[int] = None
    sqm_per_box: Optional[float] = None
    total_sqm: Optional[float] = None
    price_per_m2: Optional[float] = None
    unit_price: Optional[float] = None
    subtotal: Optional[float] = None
    estimated_days: Optional[int] = None
    is_oversized: bool
    status: PublicQuoteStatus
    requested_contact: bool
    source: Optional[str] = None
    is_below_minimum: bool
    accepted_below_minimum_terms: bool
    converted_at: Optional[datetime] = None
    converted_to_client_id: Optional[int] = None
    converted_to_quote_id: Optional[int] = None
    message: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class PublicQuoteResult(BaseModel):
    public_quote: PublicQuote
    promoted: bool = False
    total_sqm: float
    price_per_m2: float
    subtotal: float
    estimated_days: int
    warnings: List[str] = []

class BelowMinimumRequest(BaseModel):
    requested_quantity: int
    accepted_terms: bool = False

class PublicQuoteStatusUpdate(BaseModel):
    status: str

class PublicQuoteConvertRequest(BaseModel):
    create_quote: bool = False
    name: Optional[str] = None
    company: Optional[str] = None
    cuit: Optional[str] = None
    tax_condition: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None


class PublicQuoteConversion(BaseModel):
    public_quote: PublicQuote
    client: Client
    client_created: bool
    quote: Optional[Quote] = None


# --- Orders ---

class OrderItem(BaseModel):
    id: int
    length_mm: int
    width_mm: int
    height_mm: int
    m2_per_box: float
    quantity: int
    quantity_delivered: Optional[int] = None
    total_m2: float
    delivered_m2: Optional[float] = None
    class Config:
        from_attributes = True

class Order(BaseModel):
    id: int
    order_number: str
    quote_id: int
    client_id: Optional[int] = None
    status: OrderStatus
    total_m2: float
    delivered_m2: Optional[float] = None
    price_per_m2: float
    subtotal: float
    printing_cost: float
    die_cut_cost: float
    shipping_cost: float
    total: float
    deposit_amount: float
    deposit_status: PaymentStatus
    deposit_method: Optional[PaymentMethod] = None
    deposit_paid_at: Optional[datetime] = None
    balance_amount: float
    balance_status: PaymentStatus
    balance_method: Optional[PaymentMethod] = None
    balance_paid_at: Optional[datetime] = None
    quantities_confirmed: bool
    quantities_confirmed_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    production_started_at: Optional[datetime] = None
    ready_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_notes: Optional[str] = None
    estimated_delivery: Optional[date] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItem] = []
    class Config:
        from_attributes = True

class OrderStatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = None

class PaymentRequest(BaseModel):
    payment_type: str  # 'deposit' | 'balance'
    method: str

class DeliveredQuantity(BaseModel):
    id: int
    quantity_delivered: int

class ConfirmQuantitiesRequest(BaseModel):
    items: List[DeliveredQuantity] = []
