from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
import logging
from .. import models, schemas
from ..config import settings
from ..conversion import convert_public_quote
from ..database import get_db
from ..errors import TransitionNotAllowed, ValidationFailed
from ..geometry import calculate_total_m2, calculate_unfolded, minimum_quantity_for
from ..lead_dedup import LeadDeduplicator
from ..notifications import BELOW_MINIMUM_ACCEPTED, LEAD_WITH_CONTACT, notify_public_quote
from ..pricing_config import get_active_pricing_config
from ..pricing_engine import below_minimum_price, calculate_subtotal, get_pricing_policy
from ..quote_aggregator import BoxRequest, QuoteAggregator
from ..state_machines import PublicQuoteStateMachine
from ..validation import validate_lead_submission, validate_public_submission

logger = logging.getLogger(__name__)

# Visitor-facing endpoints
public_router = APIRouter(prefix="/public", tags=["public"])
# Dashboard endpoints
router = APIRouter(prefix="/public-quotes", tags=["public-quotes"])

PUBLIC_SOURCES = ("web", "phone", "whatsapp")

machine = PublicQuoteStateMachine()


def _get_public_quote(public_quote_id: int, db: Session) -> models.PublicQuote:
    public_quote = db.query(models.PublicQuote).filter(models.PublicQuote.id == public_quote_id).first()
    if not public_quote:
        raise HTTPException(status_code=404, detail="Public quote not found")
    return public_quote


def _check_source(submission: schemas.PublicQuoteSubmission):
    if submission.source not in PUBLIC_SOURCES:
        raise ValidationFailed([f"Source must be one of: {', '.join(PUBLIC_SOURCES)}"])


def _price_submission(db: Session, submission: schemas.PublicQuoteSubmission):
    """One box, priced under the policy of the channel it came in through."""
    config = get_active_pricing_config(db)
    aggregator = QuoteAggregator(get_pricing_policy(submission.source))
    return aggregator.aggregate(
        [BoxRequest(length_mm=submission.length_mm, width_mm=submission.width_mm,
                    height_mm=submission.height_mm, quantity=submission.quantity)],
        config,
        has_printing=submission.has_printing,
        distance_km=submission.distance_km,
    )


def _client_meta(request: Request):
    host = request.client.host if request.client else None
    return host, request.headers.get("user-agent")


def _result(record: models.PublicQuote, priced, promoted: bool) -> dict:
    return {
        "public_quote": record,
        "promoted": promoted,
        "total_sqm": record.total_sqm,
        "price_per_m2": record.price_per_m2,
        "subtotal": record.subtotal,
        "estimated_days": record.estimated_days,
        "warnings": priced.warnings,
    }


# --- Visitor-facing ---

@public_router.post("/leads", response_model=schemas.PublicQuoteResult)
def submit_lead(submission: schemas.PublicQuoteSubmission, request: Request, db: Session = Depends(get_db)):
    """Visitor saw a price. Recorded silently, no notification."""
    _check_source(submission)
    validate_lead_submission(submission)
    priced = _price_submission(db, submission)
    source_ip, user_agent = _client_meta(request)
    record = LeadDeduplicator().record_lead(db, submission, priced, source_ip=source_ip, user_agent=user_agent)
    db.commit()
    db.refresh(record)
    return _result(record, priced, False)


@public_router.post("/quotes", response_model=schemas.PublicQuoteResult)
def submit_public_quote(submission: schemas.PublicQuoteSubmission, request: Request,
                        db: Session = Depends(get_db)):
    """Visitor asked to be contacted. Promotes a recent lead for the same email when there is one."""
    _check_source(submission)
    validate_public_submission(submission)
    priced = _price_submission(db, submission)
    source_ip, user_agent = _client_meta(request)
    record, promoted = LeadDeduplicator().submit_contact_request(
        db, submission, priced, source_ip=source_ip, user_agent=user_agent,
    )
    db.commit()
    db.refresh(record)
    notify_public_quote(record, LEAD_WITH_CONTACT)
    return _result(record, priced, promoted)


@public_router.post("/quotes/{public_quote_id}/below-minimum", response_model=schemas.PublicQuote)
def accept_below_minimum(public_quote_id: int, body: schemas.BelowMinimumRequest, db: Session = Depends(get_db)):
    """
    Visitor accepts a smaller run (between the floor and the per-model
    minimum) at the surcharge price, without free shipping.
    """
    public_quote = _get_public_quote(public_quote_id, db)

    errors = []
    if not body.accepted_terms:
        errors.append("Below-minimum terms must be accepted")
    if body.requested_quantity < 1:
        errors.append("Quantity must be greater than 0")
    if errors:
        raise ValidationFailed(errors)
    if public_quote.status not in (models.PublicQuoteStatus.PENDING, models.PublicQuoteStatus.CONTACTED):
        raise TransitionNotAllowed("Below-minimum terms can only be accepted on open quotes", public_quote.status)

    config = get_active_pricing_config(db)
    sheet = calculate_unfolded(public_quote.length_mm, public_quote.width_mm, public_quote.height_mm)
    total_sqm = calculate_total_m2(sheet.m2, body.requested_quantity)

    floor = settings.BELOW_MINIMUM_FLOOR_M2
    if total_sqm < floor:
        raise ValidationFailed([
            f"Minimum quantity is {minimum_quantity_for(sheet.m2, floor):,} boxes to reach {floor:,.0f} m2"
        ])
    if total_sqm >= config.min_m2_per_model:
        raise ValidationFailed([
            f"Order must be under {config.min_m2_per_model:,.0f} m2 to use this option"
        ])

    price = below_minimum_price(config, settings.BELOW_MINIMUM_FALLBACK_MARKUP)
    subtotal = calculate_subtotal(total_sqm, price)

    public_quote.quantity = body.requested_quantity
    public_quote.sheet_width_mm = sheet.sheet_width_mm
    public_quote.sheet_length_mm = sheet.sheet_length_mm
    public_quote.sqm_per_box = sheet.m2
    public_quote.total_sqm = total_sqm
    public_quote.price_per_m2 = price
    public_quote.subtotal = subtotal
    public_quote.unit_price = round(subtotal / body.requested_quantity, 2)
    public_quote.is_free_shipping = False
    public_quote.is_below_minimum = True
    public_quote.accepted_below_minimum_terms = True
    public_quote.requested_contact = True
    public_quote.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(public_quote)

    notify_public_quote(public_quote, BELOW_MINIMUM_ACCEPTED)
    return public_quote


# --- Dashboard ---

@router.get("/", response_model=List[schemas.PublicQuote])
def list_public_quotes(status: Optional[models.PublicQuoteStatus] = None,
                       requested_contact: Optional[bool] = None,
                       search: Optional[str] = None,
                       skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    query = db.query(models.PublicQuote)
    if status is not None:
        query = query.filter(models.PublicQuote.status == status)
    if requested_contact is not None:
        query = query.filter(models.PublicQuote.requested_contact.is_(requested_contact))
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            models.PublicQuote.requester_name.ilike(pattern)
            | models.PublicQuote.requester_email.ilike(pattern)
            | models.PublicQuote.requester_company.ilike(pattern)
        )
    return query.order_by(models.PublicQuote.created_at.desc(), models.PublicQuote.id.desc()) \
        .offset(skip).limit(limit).all()


@router.get("/{public_quote_id}", response_model=schemas.PublicQuote)
def get_public_quote(public_quote_id: int, db: Session = Depends(get_db)):
    return _get_public_quote(public_quote_id, db)


@router.patch("/{public_quote_id}/status", response_model=schemas.PublicQuote)
def update_public_quote_status(public_quote_id: int, update: schemas.PublicQuoteStatusUpdate,
                               db: Session = Depends(get_db)):
    public_quote = _get_public_quote(public_quote_id, db)
    machine.apply(public_quote, machine.action_for(update.status))
    db.commit()
    db.refresh(public_quote)
    return public_quote


@router.post("/{public_quote_id}/convert", response_model=schemas.PublicQuoteConversion)
def convert(public_quote_id: int, request: schemas.PublicQuoteConvertRequest, db: Session = Depends(get_db)):
    public_quote = _get_public_quote(public_quote_id, db)
    client, quote, client_created = convert_public_quote(
        db, public_quote, overrides=request, create_quote=request.create_quote,
    )
    db.commit()
    db.refresh(public_quote)
    db.refresh(client)
    if quote is not None:
        db.refresh(quote)
    return {
        "public_quote": public_quote,
        "client": client,
        "client_created": client_created,
        "quote": quote,
    }
