"""
Conversion pipeline tests: public quote -> client (+ draft quote), quote -> order.
"""

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from boxquote import models
from boxquote.conversion import convert_public_quote, convert_quote_to_order, resolve_client
from boxquote.errors import DuplicateConversion, NoActivePricingConfig, TransitionNotAllowed

NOW = datetime(2026, 10, 19, 10, 0, 0)


def _public_quote(db, **overrides):
    values = dict(
        requester_name="Lucia Gomez",
        requester_company="Cajas SRL",
        requester_email="lucia@cajas.com",
        requester_phone="1155551234",
        requester_cuit="30712345679",
        length_mm=600,
        width_mm=400,
        height_mm=400,
        quantity=2000,
        sheet_width_mm=800,
        sheet_length_mm=2050,
        sqm_per_box=1.64,
        total_sqm=3280.0,
        price_per_m2=700.0,
        subtotal=2296000.0,
        unit_price=1148.0,
        estimated_days=7,
        requested_contact=True,
        status=models.PublicQuoteStatus.PENDING,
        source="web",
    )
    values.update(overrides)
    pq = models.PublicQuote(**values)
    db.add(pq)
    db.commit()
    return pq


# --- Client resolution ---

def test_resolve_client_by_cuit_then_email(db):
    by_cuit = models.Client(name="A", cuit="30712345679", email="a@x.com")
    by_email = models.Client(name="B", email="b@x.com")
    db.add_all([by_cuit, by_email])
    db.commit()

    assert resolve_client(db, cuit="30-71234567-9").id == by_cuit.id
    assert resolve_client(db, cuit="20111111112", email="B@X.com ").id == by_email.id
    assert resolve_client(db, cuit=None, email="nobody@x.com") is None


def test_same_cuit_reuses_one_client(db):
    first = _public_quote(db)
    second = _public_quote(db, requester_email="compras@cajas.com", requester_cuit="30-71234567-9")

    client_a, _, created_a = convert_public_quote(db, first, now=NOW)
    db.commit()
    client_b, _, created_b = convert_public_quote(db, second, now=NOW)
    db.commit()

    assert created_a is True
    assert created_b is False
    assert client_a.id == client_b.id
    assert db.query(models.Client).count() == 1


def test_different_cuit_creates_second_client(db):
    first = _public_quote(db)
    second = _public_quote(db, requester_email="otro@x.com", requester_cuit="20111111112")
    convert_public_quote(db, first, now=NOW)
    convert_public_quote(db, second, now=NOW)
    db.commit()
    assert db.query(models.Client).count() == 2


def test_conversion_copies_requester_and_source(db):
    pq = _public_quote(db, source="whatsapp")
    client, quote, _ = convert_public_quote(db, pq, now=NOW)
    db.commit()

    assert quote is None
    assert client.name == "Lucia Gomez"
    assert client.cuit == "30712345679"
    assert client.source == "whatsapp"
    assert client.source_quote_id == pq.id
    assert pq.status == models.PublicQuoteStatus.CONVERTED
    assert pq.converted_at == NOW
    assert pq.converted_to_client_id == client.id


def test_overrides_fill_in_the_client(db):
    pq = _public_quote(db, requester_cuit=None)
    overrides = SimpleNamespace(name="Lucia G.", cuit="27-22222222-3", city="Quilmes")
    client, _, _ = convert_public_quote(db, pq, overrides=overrides, now=NOW)
    db.commit()
    assert client.name == "Lucia G."
    assert client.cuit == "27222222223"
    assert client.city == "Quilmes"


def test_override_cuit_wins_the_client_lookup(db):
    corrected = models.Client(name="Cajas SRL", cuit="27222222223", email="admin@cajas.com")
    stale = models.Client(name="Otra", cuit="30712345679", email="otra@x.com")
    db.add_all([corrected, stale])
    db.commit()

    pq = _public_quote(db)
    client, _, created = convert_public_quote(db, pq, overrides=SimpleNamespace(cuit="27-22222222-3"), now=NOW)
    assert created is False
    assert client.id == corrected.id


def test_new_client_stores_the_cuit_it_was_looked_up_by(db):
    first = _public_quote(db)
    overrides = SimpleNamespace(cuit="27-22222222-3")
    client, _, _ = convert_public_quote(db, first, overrides=overrides, now=NOW)
    db.commit()
    assert client.cuit == "27222222223"

    second = _public_quote(db, requester_email="otro@x.com")
    again, _, created = convert_public_quote(db, second, overrides=overrides, now=NOW)
    assert created is False
    assert again.id == client.id


def test_create_quote_builds_a_draft(db, pricing_config):
    pq = _public_quote(db)
    client, quote, _ = convert_public_quote(db, pq, create_quote=True, now=NOW)
    db.commit()

    assert quote.quote_number == "COT-2026-00001"
    assert quote.status == models.QuoteStatus.DRAFT
    assert quote.client_id == client.id
    assert quote.total_m2 == 3280.0
    assert quote.subtotal == 2296000.0
    assert quote.valid_until == date(2026, 10, 26)
    assert len(quote.items) == 1
    assert quote.items[0].m2_per_box == 1.64
    assert pq.converted_to_quote_id == quote.id


def test_create_quote_without_config_writes_nothing(db):
    pq = _public_quote(db)
    with pytest.raises(NoActivePricingConfig):
        convert_public_quote(db, pq, create_quote=True, now=NOW)
    db.rollback()

    db.refresh(pq)
    assert pq.status == models.PublicQuoteStatus.PENDING
    assert pq.converted_to_client_id is None
    assert db.query(models.Client).count() == 0
    assert db.query(models.Quote).count() == 0


def test_public_quote_converted_once(db):
    pq = _public_quote(db)
    convert_public_quote(db, pq, now=NOW)
    db.commit()
    with pytest.raises(DuplicateConversion):
        convert_public_quote(db, pq, now=NOW)


def test_rejected_public_quote_cannot_convert(db):
    pq = _public_quote(db, status=models.PublicQuoteStatus.REJECTED)
    with pytest.raises(TransitionNotAllowed):
        convert_public_quote(db, pq, now=NOW)
    assert db.query(models.Client).count() == 0


# --- Quote -> order ---

def _approved_quote(db):
    client = models.Client(name="Cajas SRL", address="Av. Calchaqui 123", city="Quilmes")
    db.add(client)
    db.flush()
    quote = models.Quote(
        quote_number="COT-2026-00007",
        client_id=client.id,
        status=models.QuoteStatus.APPROVED,
        total_m2=3740.0,
        price_per_m2=700.0,
        subtotal=2618000.0,
        printing_cost=15000.0,
        total=2633001.0,
        estimated_delivery=date(2026, 10, 28),
    )
    quote.items.append(models.QuoteItem(
        length_mm=600, width_mm=400, height_mm=400, unfolded_width_mm=800, unfolded_length_mm=2050,
        m2_per_box=1.64, quantity=1000, total_m2=1640.0,
    ))
    quote.items.append(models.QuoteItem(
        length_mm=300, width_mm=200, height_mm=200, unfolded_width_mm=400, unfolded_length_mm=1050,
        m2_per_box=0.42, quantity=5000, total_m2=2100.0,
    ))
    db.add(quote)
    db.commit()
    return quote


def test_quote_converts_to_pending_deposit_order(db):
    quote = _approved_quote(db)
    order = convert_quote_to_order(db, quote, now=NOW)
    db.commit()

    assert order.order_number == "ORD-2026-00001"
    assert order.status == models.OrderStatus.PENDING_DEPOSIT
    assert order.deposit_amount + order.balance_amount == 2633001.0
    assert order.price_per_m2 == 700.0
    assert order.printing_cost == 15000.0
    assert [i.quantity for i in order.items] == [1000, 5000]
    assert order.delivery_address == "Av. Calchaqui 123"
    assert quote.status == models.QuoteStatus.CONVERTED
    assert quote.converted_to_order_id == order.id


def test_delivery_overrides_client_address(db):
    quote = _approved_quote(db)
    delivery = SimpleNamespace(delivery_address="Ruta 2 km 40", delivery_city=None, delivery_notes="Dock 3")
    order = convert_quote_to_order(db, quote, delivery=delivery, now=NOW)
    assert order.delivery_address == "Ruta 2 km 40"
    assert order.delivery_city == "Quilmes"
    assert order.delivery_notes == "Dock 3"


def test_quote_converted_once(db):
    quote = _approved_quote(db)
    convert_quote_to_order(db, quote, now=NOW)
    db.commit()
    with pytest.raises(DuplicateConversion):
        convert_quote_to_order(db, quote, now=NOW)
    assert db.query(models.Order).count() == 1


def test_unapproved_quote_cannot_convert(db):
    quote = _approved_quote(db)
    quote.status = models.QuoteStatus.SENT
    db.commit()
    with pytest.raises(TransitionNotAllowed):
        convert_quote_to_order(db, quote, now=NOW)
    assert db.query(models.Order).count() == 0
