"""
Conversion pipeline.

- public quote -> client (+ optional draft quote)
- approved quote -> order

Every precondition (active config, document number) is settled before the
first write, so a failure never leaves a half-converted record behind.
Callers commit.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from . import models
from .errors import DuplicateConversion
from .pricing_config import get_active_pricing_config
from .pricing_engine import calculate_delivery_date, calculate_payment_amounts, calculate_valid_until
from .sequences import next_order_number, next_quote_number
from .state_machines import PublicQuoteStateMachine, QuoteStateMachine
from .validation import clean_text, normalize_digits, normalize_email

logger = logging.getLogger(__name__)


def resolve_client(db: Session, cuit=None, email=None):
    """Existing client by normalized CUIT first, then by normalized email."""
    cuit = normalize_digits(cuit)
    if cuit:
        client = db.query(models.Client).filter(models.Client.cuit == cuit).first()
        if client:
            return client
    email = normalize_email(email)
    if email:
        return db.query(models.Client).filter(models.Client.email == email).first()
    return None


def _override(overrides, field, fallback):
    value = clean_text(getattr(overrides, field, None)) if overrides is not None else None
    return value if value is not None else fallback


def _client_from_public_quote(public_quote: models.PublicQuote, overrides) -> models.Client:
    source = "whatsapp" if public_quote.source == "whatsapp" else (
        "phone" if public_quote.source == "phone" else "web"
    )
    return models.Client(
        name=_override(overrides, "name", public_quote.requester_name),
        company=_override(overrides, "company", public_quote.requester_company),
        cuit=normalize_digits(_override(overrides, "cuit", public_quote.requester_cuit)),
        tax_condition=_override(overrides, "tax_condition", public_quote.requester_tax_condition)
        or "consumidor_final",
        email=normalize_email(_override(overrides, "email", public_quote.requester_email)),
        phone=normalize_digits(_override(overrides, "phone", public_quote.requester_phone)),
        address=_override(overrides, "address", public_quote.address),
        city=_override(overrides, "city", public_quote.city),
        province=_override(overrides, "province", public_quote.province) or "Buenos Aires",
        postal_code=_override(overrides, "postal_code", public_quote.postal_code),
        distance_km=public_quote.distance_km,
        source=source,
        source_quote_id=public_quote.id,
    )


def _channel_for(source) -> models.Channel:
    try:
        return models.Channel(source)
    except ValueError:
        return models.Channel.WEB


def convert_public_quote(db: Session, public_quote: models.PublicQuote, overrides=None,
                         create_quote: bool = False, now: datetime = None):
    """
    Turn a public quote into a client, reusing a matching one.

    Returns (client, quote_or_None, client_created).
    """
    now = now or datetime.utcnow()
    machine = PublicQuoteStateMachine()
    if public_quote.converted_to_client_id is not None:
        raise DuplicateConversion(
            f"Public quote {public_quote.id} was already converted", public_quote.status,
        )
    machine.check(public_quote, "convert")

    config = None
    quote_number = None
    if create_quote:
        # Both fail closed, before anything is written
        config = get_active_pricing_config(db)
        quote_number = next_quote_number(db, now)

    # Operator corrections win, for the lookup and for a new client alike
    client = resolve_client(
        db,
        cuit=_override(overrides, "cuit", public_quote.requester_cuit),
        email=_override(overrides, "email", public_quote.requester_email),
    )
    client_created = client is None
    if client_created:
        client = _client_from_public_quote(public_quote, overrides)
        db.add(client)
        db.flush()
        logger.info("Created client %s from public quote %s", client.id, public_quote.id)
    else:
        logger.info("Public quote %s matched existing client %s", public_quote.id, client.id)

    machine.apply(public_quote, "convert", now)
    public_quote.converted_to_client_id = client.id

    quote = None
    if create_quote:
        today = now.date()
        quote = models.Quote(
            quote_number=quote_number,
            client_id=client.id,
            status=models.QuoteStatus.DRAFT,
            channel=_channel_for(public_quote.source),
            total_m2=public_quote.total_sqm,
            price_per_m2=public_quote.price_per_m2,
            subtotal=public_quote.subtotal,
            has_printing=bool(public_quote.has_printing),
            printing_colors=public_quote.printing_colors or 0,
            printing_cost=0.0,
            has_die_cut=False,
            die_cut_cost=0.0,
            shipping_cost=0.0,
            is_free_shipping=bool(public_quote.is_free_shipping),
            total=public_quote.subtotal,
            production_days=public_quote.estimated_days,
            estimated_delivery=calculate_delivery_date(public_quote.estimated_days or 0, today),
            valid_until=calculate_valid_until(config.quote_validity_days, today),
            notes=public_quote.message,
            internal_notes=f"Converted from public quote #{public_quote.id}",
            created_at=now,
            updated_at=now,
        )
        quote.items.append(models.QuoteItem(
            length_mm=public_quote.length_mm,
            width_mm=public_quote.width_mm,
            height_mm=public_quote.height_mm,
            unfolded_width_mm=public_quote.sheet_width_mm,
            unfolded_length_mm=public_quote.sheet_length_mm,
            m2_per_box=public_quote.sqm_per_box,
            quantity=public_quote.quantity,
            total_m2=public_quote.total_sqm,
            is_custom=True,
            is_oversized=bool(public_quote.is_oversized),
        ))
        db.add(quote)
        db.flush()
        public_quote.converted_to_quote_id = quote.id
        logger.info("Created quote %s from public quote %s", quote.quote_number, public_quote.id)

    db.flush()
    return client, quote, client_created


def convert_quote_to_order(db: Session, quote: models.Quote, delivery=None, now: datetime = None) -> models.Order:
    """Approved quote -> order in pending_deposit with a 50/50 payment split."""
    now = now or datetime.utcnow()
    machine = QuoteStateMachine()
    if quote.converted_to_order_id is not None:
        raise DuplicateConversion(f"Quote {quote.quote_number} was already converted", quote.status)
    machine.check(quote, "convert")

    order_number = next_order_number(db, now)
    deposit, balance = calculate_payment_amounts(quote.total or 0.0)
    client = quote.client

    order = models.Order(
        order_number=order_number,
        quote_id=quote.id,
        client_id=quote.client_id,
        status=models.OrderStatus.PENDING_DEPOSIT,
        total_m2=quote.total_m2,
        price_per_m2=quote.price_per_m2,
        subtotal=quote.subtotal,
        printing_cost=quote.printing_cost or 0.0,
        die_cut_cost=quote.die_cut_cost or 0.0,
        shipping_cost=quote.shipping_cost or 0.0,
        total=quote.total,
        deposit_amount=deposit,
        deposit_status=models.PaymentStatus.PENDING,
        balance_amount=balance,
        balance_status=models.PaymentStatus.PENDING,
        quantities_confirmed=False,
        delivery_address=_override(delivery, "delivery_address", client.address if client else None),
        delivery_city=_override(delivery, "delivery_city", client.city if client else None),
        delivery_notes=_override(delivery, "delivery_notes", None),
        estimated_delivery=quote.estimated_delivery,
        created_at=now,
        updated_at=now,
    )
    for item in quote.items:
        order.items.append(models.OrderItem(
            length_mm=item.length_mm,
            width_mm=item.width_mm,
            height_mm=item.height_mm,
            m2_per_box=item.m2_per_box,
            quantity=item.quantity,
            total_m2=item.total_m2,
        ))
    db.add(order)
    db.flush()

    machine.apply(quote, "convert", now)
    quote.converted_to_order_id = order.id
    db.flush()
    logger.info("Quote %s converted to order %s", quote.quote_number, order.order_number)
    return order
