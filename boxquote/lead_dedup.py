"""
Lead deduplication for public submissions.

A visitor who first silently viewed a price (lead) and then asked to be
contacted (web quote) is one prospect: the contact request promotes the
recent lead in place instead of inserting a second row.

Two simultaneous submissions may both miss the lead and both insert. That
duplicate is tolerated; repeat inquiries after the window must stay possible,
so there is no uniqueness constraint to lean on.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from . import models
from .config import settings
from .validation import clean_text, normalize_digits, normalize_email

logger = logging.getLogger(__name__)

CONTACT_FIELDS = [
    "requester_name",
    "requester_company",
    "requester_tax_condition",
    "address",
    "city",
    "province",
    "postal_code",
    "message",
]


def _apply_submission(record: models.PublicQuote, submission, priced, source_ip=None, user_agent=None):
    """Copy a submission and its pricing onto a row. Latest write wins."""
    for field in CONTACT_FIELDS:
        value = clean_text(getattr(submission, field, None))
        if value is not None:
            setattr(record, field, value)
    record.requester_name = record.requester_name or ""
    record.requester_email = normalize_email(submission.requester_email)
    record.requester_phone = normalize_digits(submission.requester_phone) or record.requester_phone
    record.requester_cuit = normalize_digits(getattr(submission, "requester_cuit", None)) or record.requester_cuit
    record.distance_km = submission.distance_km
    record.source = getattr(submission, "source", None) or "web"

    record.length_mm = submission.length_mm
    record.width_mm = submission.width_mm
    record.height_mm = submission.height_mm
    record.quantity = submission.quantity
    record.has_printing = bool(submission.has_printing)
    record.printing_colors = submission.printing_colors or 0

    item = priced.items[0]
    record.sheet_width_mm = item.unfolded_width_mm
    record.sheet_length_mm = item.unfolded_length_mm
    record.sqm_per_box = item.m2_per_box
    record.total_sqm = priced.total_m2
    record.price_per_m2 = priced.price_per_m2
    record.subtotal = priced.subtotal
    record.unit_price = round(priced.subtotal / submission.quantity, 2)
    record.estimated_days = priced.production_days
    record.is_oversized = item.is_oversized
    record.is_free_shipping = priced.is_free_shipping
    record.is_below_minimum = priced.below_minimum

    if source_ip is not None:
        record.source_ip = source_ip
    if user_agent is not None:
        record.source_user_agent = user_agent


class LeadDeduplicator:
    def __init__(self, window: timedelta = None):
        self.window = window or timedelta(hours=settings.LEAD_MERGE_WINDOW_HOURS)

    def find_promotable_lead(self, db: Session, email: str, now: datetime = None):
        """Newest pending silent lead for this email inside the merge window."""
        email = normalize_email(email)
        if not email:
            return None
        now = now or datetime.utcnow()
        return db.query(models.PublicQuote).filter(
            models.PublicQuote.requester_email == email,
            models.PublicQuote.requested_contact.is_(False),
            models.PublicQuote.status == models.PublicQuoteStatus.PENDING,
            models.PublicQuote.created_at >= now - self.window,
        ).order_by(models.PublicQuote.created_at.desc(), models.PublicQuote.id.desc()).first()

    def submit_contact_request(self, db: Session, submission, priced, now: datetime = None,
                               source_ip=None, user_agent=None):
        """
        Promote a recent lead or insert a new web quote.

        Returns (record, promoted). Flushes but does not commit.
        """
        now = now or datetime.utcnow()
        lead = self.find_promotable_lead(db, submission.requester_email, now)

        if lead is not None:
            _apply_submission(lead, submission, priced, source_ip, user_agent)
            lead.requested_contact = True
            lead.updated_at = now
            db.flush()
            logger.info("Promoted lead %s to web quote", lead.id)
            return lead, True

        record = models.PublicQuote(
            requested_contact=True,
            status=models.PublicQuoteStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        _apply_submission(record, submission, priced, source_ip, user_agent)
        db.add(record)
        db.flush()
        logger.info("Created web quote %s", record.id)
        return record, False

    def record_lead(self, db: Session, submission, priced, now: datetime = None,
                    source_ip=None, user_agent=None) -> models.PublicQuote:
        """Insert a silent lead: the visitor saw a price but asked for nothing."""
        now = now or datetime.utcnow()
        record = models.PublicQuote(
            requested_contact=False,
            status=models.PublicQuoteStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        _apply_submission(record, submission, priced, source_ip, user_agent)
        db.add(record)
        db.flush()
        return record
