"""
Reconciliation tests: delivered vs. quoted area, frozen price, one-time confirmation.
"""

from datetime import datetime
from types import SimpleNamespace

import pytest

from boxquote import models
from boxquote.errors import TransitionNotAllowed, ValidationFailed
from boxquote.reconciliation import confirm_quantities, reconcile

NOW = datetime(2026, 10, 19, 10, 0, 0)


def _order(deposit_status=models.PaymentStatus.PAID):
    return SimpleNamespace(
        order_number="ORD-2026-00001",
        items=[
            SimpleNamespace(id=1, quantity=1000, m2_per_box=1.64),
            SimpleNamespace(id=2, quantity=500, m2_per_box=0.42),
        ],
        price_per_m2=700.0,
        printing_cost=10000.0,
        die_cut_cost=0.0,
        shipping_cost=0.0,
        total=1305000.0,
        deposit_amount=652500.0,
        deposit_status=deposit_status,
    )


# --- Pure reconciliation ---

def test_reconcile_recomputes_from_delivered_area():
    result = reconcile(_order(), {1: 950, 2: 520})
    assert result.original_m2 == 1850.0
    assert result.delivered_m2 == 1776.4
    assert result.difference_m2 == -73.6
    assert result.precision_percent == 96.02
    assert result.subtotal == 1243480.0
    assert result.total == 1253480.0  # printing stays as quoted


def test_price_per_m2_is_frozen():
    # 1.64 m2 is far below the minimum; the quoted price still applies
    result = reconcile(_order(), {1: 1, 2: 0})
    assert result.subtotal == round(1.64 * 700.0, 2)


def test_balance_after_paid_deposit():
    result = reconcile(_order(), {1: 950, 2: 520})
    assert result.balance_amount == round(1253480.0 - 652500.0, 2)


def test_balance_never_negative():
    result = reconcile(_order(), {1: 0, 2: 0})
    assert result.total == 10000.0
    assert result.balance_amount == 0.0


def test_balance_is_half_when_deposit_unpaid():
    result = reconcile(_order(models.PaymentStatus.PENDING), {1: 950, 2: 520})
    assert result.balance_amount == 626740.0


def test_missing_items_count_as_delivered_in_full():
    result = reconcile(_order(), {1: 950})
    assert [i.quantity_delivered for i in result.items] == [950, 500]


def test_reconcile_does_not_touch_the_order():
    order = _order()
    reconcile(order, {1: 950})
    assert order.items[0].quantity == 1000
    assert order.total == 1305000.0


def test_unknown_items_and_negative_quantities_are_rejected():
    with pytest.raises(ValidationFailed) as exc:
        reconcile(_order(), {99: 10, 2: -1})
    assert len(exc.value.errors) == 2


def test_result_dict_shape():
    data = reconcile(_order(), {1: 950, 2: 520}).to_dict()
    assert data["original"] == {"total_m2": 1850.0, "total": 1305000.0}
    assert data["delivered"]["total_m2"] == 1776.4
    assert data["precision_percent"] == 96.02
    assert data["items"][0]["quantity_delivered"] == 950


# --- Persisted confirmation ---

def _ready_order(db):
    quote = models.Quote(quote_number="COT-2026-00001", status=models.QuoteStatus.CONVERTED)
    db.add(quote)
    db.flush()
    order = models.Order(
        order_number="ORD-2026-00001",
        quote_id=quote.id,
        status=models.OrderStatus.READY,
        total_m2=1640.0,
        price_per_m2=700.0,
        subtotal=1148000.0,
        total=1148000.0,
        deposit_amount=574000.0,
        deposit_status=models.PaymentStatus.PAID,
        balance_amount=574000.0,
    )
    order.items.append(models.OrderItem(
        length_mm=600, width_mm=400, height_mm=400, m2_per_box=1.64, quantity=1000, total_m2=1640.0,
    ))
    db.add(order)
    db.commit()
    return order


def test_confirm_quantities_persists_once(db):
    order = _ready_order(db)
    item_id = order.items[0].id

    result = confirm_quantities(db, order, {item_id: 980}, now=NOW)
    db.commit()
    assert result.delivered_m2 == 1607.2

    db.refresh(order)
    assert order.quantities_confirmed is True
    assert order.quantities_confirmed_at == NOW
    assert order.delivered_m2 == 1607.2
    assert order.total_m2 == 1640.0
    assert order.subtotal == 1125040.0
    assert order.balance_amount == round(1125040.0 - 574000.0, 2)
    assert order.items[0].quantity_delivered == 980

    with pytest.raises(TransitionNotAllowed):
        confirm_quantities(db, order, {item_id: 1000}, now=NOW)
    db.refresh(order)
    assert order.items[0].quantity_delivered == 980
    assert order.delivered_m2 == 1607.2


def test_confirm_quantities_requires_ready(db):
    order = _ready_order(db)
    order.status = models.OrderStatus.SHIPPED
    db.commit()
    with pytest.raises(TransitionNotAllowed):
        confirm_quantities(db, order, {}, now=NOW)
    db.refresh(order)
    assert order.quantities_confirmed is False
