"""
Lead deduplication tests: a silent lead followed by a contact request from
the same email is one prospect inside the merge window, two outside it.
"""

from datetime import datetime, timedelta

from boxquote import models, schemas
from boxquote.lead_dedup import LeadDeduplicator
from boxquote.quote_aggregator import BoxRequest, QuoteAggregator

T0 = datetime(2026, 10, 19, 9, 0, 0)


def _submission(**overrides):
    values = dict(
        requester_name="Lucia Gomez",
        requester_email="a@x.com",
        requester_phone="11 5555-1234",
        length_mm=600,
        width_mm=400,
        height_mm=400,
        quantity=1000,
    )
    values.update(overrides)
    return schemas.PublicQuoteSubmission(**values)


def _priced(submission, config):
    return QuoteAggregator().aggregate(
        [BoxRequest(submission.length_mm, submission.width_mm, submission.height_mm, submission.quantity)],
        config,
        has_printing=submission.has_printing,
        distance_km=submission.distance_km,
    )


def _lead(db, config, at, **overrides):
    submission = _submission(**overrides)
    record = LeadDeduplicator().record_lead(db, submission, _priced(submission, config), now=at)
    db.commit()
    return record


def _contact(db, config, at, **overrides):
    submission = _submission(**overrides)
    record, promoted = LeadDeduplicator().submit_contact_request(db, submission, _priced(submission, config), now=at)
    db.commit()
    return record, promoted


def test_contact_within_window_promotes_lead(db, pricing_config):
    lead = _lead(db, pricing_config, T0)
    record, promoted = _contact(db, pricing_config, T0 + timedelta(hours=2), requester_company="Cajas SRL")

    assert promoted is True
    assert record.id == lead.id
    assert db.query(models.PublicQuote).count() == 1
    assert record.requested_contact is True
    assert record.requester_company == "Cajas SRL"


def test_contact_after_window_creates_second_row(db, pricing_config):
    _lead(db, pricing_config, T0)
    record, promoted = _contact(db, pricing_config, T0 + timedelta(hours=25))

    assert promoted is False
    rows = db.query(models.PublicQuote).order_by(models.PublicQuote.id).all()
    assert len(rows) == 2
    assert [r.requested_contact for r in rows] == [False, True]


def test_email_match_ignores_case_and_spaces(db, pricing_config):
    _lead(db, pricing_config, T0, requester_email="A@X.com")
    _, promoted = _contact(db, pricing_config, T0 + timedelta(hours=1), requester_email="  a@x.COM ")
    assert promoted is True
    assert db.query(models.PublicQuote).count() == 1


def test_different_email_never_merges(db, pricing_config):
    _lead(db, pricing_config, T0)
    _, promoted = _contact(db, pricing_config, T0 + timedelta(hours=1), requester_email="b@x.com")
    assert promoted is False
    assert db.query(models.PublicQuote).count() == 2


def test_already_promoted_lead_is_not_reused(db, pricing_config):
    _lead(db, pricing_config, T0)
    _contact(db, pricing_config, T0 + timedelta(hours=1))
    _, promoted = _contact(db, pricing_config, T0 + timedelta(hours=2))
    assert promoted is False
    assert db.query(models.PublicQuote).count() == 2


def test_contacted_lead_is_not_promotable(db, pricing_config):
    lead = _lead(db, pricing_config, T0)
    lead.status = models.PublicQuoteStatus.CONTACTED
    db.commit()
    assert LeadDeduplicator().find_promotable_lead(db, "a@x.com", T0 + timedelta(hours=1)) is None


def test_newest_lead_wins(db, pricing_config):
    _lead(db, pricing_config, T0)
    newer = _lead(db, pricing_config, T0 + timedelta(hours=3))
    found = LeadDeduplicator().find_promotable_lead(db, "a@x.com", T0 + timedelta(hours=4))
    assert found.id == newer.id


def test_promotion_stores_latest_pricing(db, pricing_config):
    _lead(db, pricing_config, T0)
    record, _ = _contact(db, pricing_config, T0 + timedelta(hours=1), quantity=2000)
    assert record.quantity == 2000
    assert record.total_sqm == 3280.0
    assert record.subtotal == round(3280.0 * 700.0, 2)
    assert record.requester_phone == "1155551234"
