from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date, datetime
import logging
from .. import models, schemas
from ..conversion import convert_quote_to_order
from ..database import get_db
from ..errors import TransitionNotAllowed
from ..pricing_config import get_active_pricing_config
from ..pricing_engine import (
    calculate_delivery_date,
    calculate_payment_amounts,
    calculate_valid_until,
    get_pricing_policy,
)
from ..quote_aggregator import BoxRequest, QuoteAggregator
from ..sequences import next_quote_number
from ..state_machines import QuoteStateMachine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["quotes"])

machine = QuoteStateMachine()


def _get_quote(quote_id: int, db: Session) -> models.Quote:
    quote = db.query(models.Quote).filter(models.Quote.id == quote_id).first()
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return quote


def _get_client(client_id, db: Session):
    if client_id is None:
        return None
    client = db.query(models.Client).filter(models.Client.id == client_id).first()
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


def price_items(db: Session, items, channel, client=None, distance_km=None, has_printing=False,
                printing_cost=0.0, die_cut_cost=0.0, shipping_cost=0.0):
    """
    Price line items against the active config.

    The config is read fresh on every call. Distance falls back to the
    client's stored distance when the request does not carry one.
    """
    config = get_active_pricing_config(db)
    if distance_km is None and client is not None:
        distance_km = client.distance_km
    requests = [
        BoxRequest(length_mm=i.length_mm, width_mm=i.width_mm, height_mm=i.height_mm,
                   quantity=i.quantity, box_id=i.box_id)
        for i in items
    ]
    aggregator = QuoteAggregator(get_pricing_policy(channel))
    priced = aggregator.aggregate(
        requests, config,
        has_printing=has_printing,
        distance_km=distance_km,
        printing_cost=printing_cost,
        die_cut_cost=die_cut_cost,
        shipping_cost=shipping_cost,
    )
    return priced, config


def apply_pricing(quote: models.Quote, priced, today: date):
    """Write aggregated totals and line items onto a quote. Replaces existing items."""
    quote.total_m2 = priced.total_m2
    quote.price_per_m2 = priced.price_per_m2
    quote.subtotal = priced.subtotal
    quote.printing_cost = priced.printing_cost
    quote.die_cut_cost = priced.die_cut_cost
    quote.shipping_cost = priced.shipping_cost
    quote.total = priced.total
    quote.is_free_shipping = priced.is_free_shipping
    quote.shipping_notes = priced.shipping_notes
    quote.production_days = priced.production_days
    quote.estimated_delivery = calculate_delivery_date(priced.production_days, today)
    quote.items = [
        models.QuoteItem(
            box_id=item.box_id,
            length_mm=item.length_mm,
            width_mm=item.width_mm,
            height_mm=item.height_mm,
            unfolded_width_mm=item.unfolded_width_mm,
            unfolded_length_mm=item.unfolded_length_mm,
            m2_per_box=item.m2_per_box,
            quantity=item.quantity,
            total_m2=item.total_m2,
            is_custom=item.is_custom,
            is_oversized=item.is_oversized,
        )
        for item in priced.items
    ]


# --- Endpoints ---

@router.post("/calculate")
def calculate_quote(request: schemas.QuoteCalculateRequest, db: Session = Depends(get_db)):
    """Priced preview. Nothing is persisted."""
    client = _get_client(request.client_id, db)
    priced, config = price_items(
        db, request.items, request.channel, client,
        distance_km=request.distance_km,
        has_printing=request.has_printing,
        printing_cost=request.printing_cost,
        die_cut_cost=request.die_cut_cost,
        shipping_cost=request.shipping_cost,
    )
    today = date.today()
    deposit, balance = calculate_payment_amounts(priced.total)
    result = priced.to_dict()
    result.update({
        "estimated_delivery": calculate_delivery_date(priced.production_days, today).isoformat(),
        "valid_until": calculate_valid_until(config.quote_validity_days, today).isoformat(),
        "deposit_amount": deposit,
        "balance_amount": balance,
    })
    return result


@router.post("/", response_model=schemas.Quote)
def create_quote(request: schemas.QuoteCreate, db: Session = Depends(get_db)):
    client = _get_client(request.client_id, db)
    now = datetime.utcnow()
    today = now.date()

    # Pricing and numbering fail closed before the quote row exists
    priced, config = price_items(
        db, request.items, request.channel, client,
        distance_km=request.distance_km,
        has_printing=request.has_printing,
        printing_cost=request.printing_cost,
        die_cut_cost=request.die_cut_cost,
        shipping_cost=request.shipping_cost,
    )
    quote_number = next_quote_number(db, now)

    quote = models.Quote(
        quote_number=quote_number,
        client_id=request.client_id,
        status=models.QuoteStatus.DRAFT,
        channel=request.channel,
        has_printing=request.has_printing,
        printing_colors=request.printing_colors,
        has_die_cut=request.has_die_cut,
        valid_until=calculate_valid_until(config.quote_validity_days, today),
        notes=request.notes,
        internal_notes=request.internal_notes,
        created_at=now,
        updated_at=now,
    )
    apply_pricing(quote, priced, today)
    db.add(quote)
    db.commit()
    db.refresh(quote)
    logger.info("Created quote %s (%.4f m2, total %.2f)", quote.quote_number, quote.total_m2, quote.total)
    return quote


@router.get("/", response_model=List[schemas.Quote])
def list_quotes(status: Optional[models.QuoteStatus] = None, client_id: Optional[int] = None,
                skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    query = db.query(models.Quote)
    if status is not None:
        query = query.filter(models.Quote.status == status)
    if client_id is not None:
        query = query.filter(models.Quote.client_id == client_id)
    return query.order_by(models.Quote.created_at.desc(), models.Quote.id.desc()).offset(skip).limit(limit).all()


@router.post("/expire")
def expire_quotes(db: Session = Depends(get_db)):
    """Sweep: expire every open quote whose validity deadline has passed."""
    today = date.today()
    allowed_from, _ = machine.TRANSITIONS["expire"]
    candidates = db.query(models.Quote).filter(
        models.Quote.status.in_(list(allowed_from)),
        models.Quote.valid_until.isnot(None),
        models.Quote.valid_until < today,
    ).all()
    expired = [q.quote_number for q in candidates if machine.expire_if_elapsed(q, today)]
    db.commit()
    if expired:
        logger.info("Expired %d quotes: %s", len(expired), ", ".join(expired))
    return {"expired": len(expired), "quote_numbers": expired}


@router.get("/{quote_id}", response_model=schemas.Quote)
def get_quote(quote_id: int, db: Session = Depends(get_db)):
    return _get_quote(quote_id, db)


@router.put("/{quote_id}/items", response_model=schemas.Quote)
def replace_items(quote_id: int, update: schemas.QuoteItemsUpdate, db: Session = Depends(get_db)):
    quote = _get_quote(quote_id, db)
    machine.ensure_editable(quote)
    priced, _ = price_items(
        db, update.items, quote.channel, quote.client,
        distance_km=update.distance_km,
        has_printing=quote.has_printing,
        printing_cost=quote.printing_cost,
        die_cut_cost=quote.die_cut_cost,
        shipping_cost=quote.shipping_cost,
    )
    apply_pricing(quote, priced, date.today())
    quote.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(quote)
    return quote


@router.post("/{quote_id}/send", response_model=schemas.Quote)
def send_quote(quote_id: int, db: Session = Depends(get_db)):
    quote = _get_quote(quote_id, db)
    machine.apply(quote, "send")
    db.commit()
    db.refresh(quote)
    return quote


@router.post("/{quote_id}/approve", response_model=schemas.Quote)
def approve_quote(quote_id: int, db: Session = Depends(get_db)):
    quote = _get_quote(quote_id, db)
    if machine.expire_if_elapsed(quote, date.today()):
        db.commit()
        raise TransitionNotAllowed(
            f"Quote {quote.quote_number} expired on {quote.valid_until.isoformat()}", quote.status,
        )
    machine.apply(quote, "approve")
    db.commit()
    db.refresh(quote)
    return quote


@router.post("/{quote_id}/reject", response_model=schemas.Quote)
def reject_quote(quote_id: int, request: Optional[schemas.QuoteRejectRequest] = None,
                 db: Session = Depends(get_db)):
    quote = _get_quote(quote_id, db)
    machine.apply(quote, "reject")
    if request is not None and request.reason:
        note = f"Rejected: {request.reason}"
        quote.internal_notes = f"{quote.internal_notes}\n{note}" if quote.internal_notes else note
    db.commit()
    db.refresh(quote)
    return quote


@router.delete("/{quote_id}")
def delete_quote(quote_id: int, db: Session = Depends(get_db)):
    quote = _get_quote(quote_id, db)
    machine.ensure_deletable(quote)
    db.delete(quote)
    db.commit()
    return {"ok": True, "deleted": quote_id}


@router.post("/{quote_id}/convert", response_model=schemas.Order)
def convert_quote(quote_id: int, request: Optional[schemas.QuoteConvertRequest] = None,
                  db: Session = Depends(get_db)):
    quote = _get_quote(quote_id, db)
    order = convert_quote_to_order(db, quote, request)
    db.commit()
    db.refresh(order)
    return order
