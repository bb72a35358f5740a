"""
Quote and public quote lifecycle tests: plain objects, no database.
"""

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from boxquote.errors import DuplicateConversion, TransitionNotAllowed, ValidationFailed
from boxquote.models import PublicQuoteStatus, QuoteStatus
from boxquote.state_machines import PublicQuoteStateMachine, QuoteStateMachine

NOW = datetime(2026, 10, 19, 10, 0, 0)
LATER = datetime(2026, 10, 20, 10, 0, 0)


def _quote(status=QuoteStatus.DRAFT, **overrides):
    values = dict(
        quote_number="COT-2026-00001",
        status=status,
        sent_at=None,
        approved_at=None,
        rejected_at=None,
        expired_at=None,
        valid_until=date(2026, 10, 26),
        updated_at=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_draft_can_be_sent_and_approved():
    machine = QuoteStateMachine()
    quote = _quote()
    machine.apply(quote, "send", NOW)
    assert quote.status == QuoteStatus.SENT
    assert quote.sent_at == NOW
    machine.apply(quote, "approve", LATER)
    assert quote.status == QuoteStatus.APPROVED
    assert quote.approved_at == LATER


def test_draft_can_be_approved_directly():
    quote = _quote()
    QuoteStateMachine().apply(quote, "approve", NOW)
    assert quote.status == QuoteStatus.APPROVED


def test_rejected_quote_cannot_be_approved():
    quote = _quote(QuoteStatus.REJECTED, rejected_at=NOW)
    with pytest.raises(TransitionNotAllowed) as exc:
        QuoteStateMachine().apply(quote, "approve", LATER)
    assert exc.value.current_status == "rejected"
    assert quote.status == QuoteStatus.REJECTED
    assert quote.approved_at is None
    assert quote.updated_at is None


def test_send_requires_draft():
    with pytest.raises(TransitionNotAllowed):
        QuoteStateMachine().check(_quote(QuoteStatus.SENT), "send")


@pytest.mark.parametrize("status", [QuoteStatus.DRAFT, QuoteStatus.SENT, QuoteStatus.REJECTED, QuoteStatus.EXPIRED])
def test_convert_requires_approved(status):
    with pytest.raises(TransitionNotAllowed):
        QuoteStateMachine().check(_quote(status), "convert")


def test_converting_twice_is_a_duplicate():
    with pytest.raises(DuplicateConversion):
        QuoteStateMachine().check(_quote(QuoteStatus.CONVERTED), "convert")


def test_unknown_action_is_a_validation_error():
    with pytest.raises(ValidationFailed):
        QuoteStateMachine().check(_quote(), "archive")


def test_stamps_are_set_once():
    quote = _quote(QuoteStatus.DRAFT, sent_at=NOW)
    QuoteStateMachine().apply(quote, "send", LATER)
    assert quote.sent_at == NOW
    assert quote.updated_at == LATER


def test_items_are_editable_only_in_draft():
    machine = QuoteStateMachine()
    assert machine.can_edit_items(_quote(QuoteStatus.DRAFT)) is True
    for status in (QuoteStatus.SENT, QuoteStatus.APPROVED, QuoteStatus.CONVERTED):
        assert machine.can_edit_items(_quote(status)) is False
    with pytest.raises(TransitionNotAllowed):
        machine.ensure_editable(_quote(QuoteStatus.SENT))


def test_only_converted_quotes_are_protected_from_delete():
    machine = QuoteStateMachine()
    assert machine.can_delete(_quote(QuoteStatus.APPROVED)) is True
    assert machine.can_delete(_quote(QuoteStatus.CONVERTED)) is False
    with pytest.raises(TransitionNotAllowed):
        machine.ensure_deletable(_quote(QuoteStatus.CONVERTED))


def test_expire_if_elapsed():
    machine = QuoteStateMachine()
    quote = _quote(QuoteStatus.SENT, valid_until=date(2026, 10, 18))
    assert machine.expire_if_elapsed(quote, today=date(2026, 10, 18), now=NOW) is False
    assert machine.expire_if_elapsed(quote, today=date(2026, 10, 19), now=NOW) is True
    assert quote.status == QuoteStatus.EXPIRED
    assert quote.expired_at == NOW


def test_expiry_skips_closed_quotes_and_undated_ones():
    machine = QuoteStateMachine()
    today = date(2026, 10, 19)
    rejected = _quote(QuoteStatus.REJECTED, valid_until=date(2026, 1, 1))
    undated = _quote(QuoteStatus.DRAFT, valid_until=None)
    assert machine.expire_if_elapsed(rejected, today=today) is False
    assert machine.expire_if_elapsed(undated, today=today) is False
    assert rejected.status == QuoteStatus.REJECTED


# --- Public quotes ---

def _public_quote(status=PublicQuoteStatus.PENDING):
    return SimpleNamespace(id=7, status=status, converted_at=None, updated_at=None)


def test_public_quote_contact_then_convert():
    machine = PublicQuoteStateMachine()
    pq = _public_quote()
    machine.apply(pq, "contact", NOW)
    assert pq.status == PublicQuoteStatus.CONTACTED
    assert pq.converted_at is None
    machine.apply(pq, "convert", LATER)
    assert pq.status == PublicQuoteStatus.CONVERTED
    assert pq.converted_at == LATER


def test_public_quote_rejected_is_final():
    machine = PublicQuoteStateMachine()
    with pytest.raises(TransitionNotAllowed):
        machine.check(_public_quote(PublicQuoteStatus.REJECTED), "convert")
    with pytest.raises(DuplicateConversion):
        machine.check(_public_quote(PublicQuoteStatus.CONVERTED), "convert")


def test_dashboard_status_maps_to_action():
    machine = PublicQuoteStateMachine()
    assert machine.action_for("contacted") == "contact"
    assert machine.action_for("rejected") == "reject"
    with pytest.raises(ValidationFailed):
        machine.action_for("converted")
    with pytest.raises(ValidationFailed):
        machine.action_for("archived")
