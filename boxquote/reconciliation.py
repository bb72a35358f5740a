"""
Reconciliation of quoted vs. delivered quantities.

Production never lands exactly on the quoted count. Once an order is ready,
the delivered quantity per item is confirmed a single time and the amount
owed follows the delivered area. The price per m2 is frozen at quote time:
pricing is NOT re-run, so a short delivery cannot jump into another tier.
Printing, die cut and shipping are fixed costs and stay as quoted.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session

from . import models
from .errors import TransitionNotAllowed, ValidationFailed
from .geometry import M2_DECIMALS
from .pricing_engine import calculate_subtotal, calculate_total
from .state_machines import OrderStateMachine, is_paid

logger = logging.getLogger(__name__)


@dataclass
class ReconciledItem:
    item_id: int
    quantity: int
    quantity_delivered: int
    m2_per_box: float
    original_m2: float
    delivered_m2: float
    difference_m2: float


@dataclass
class ReconciliationResult:
    original_m2: float
    delivered_m2: float
    difference_m2: float
    precision_percent: float
    subtotal: float
    total: float
    deposit_amount: float
    balance_amount: float
    original_total: float
    items: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "original": {"total_m2": self.original_m2, "total": self.original_total},
            "delivered": {
                "total_m2": self.delivered_m2,
                "subtotal": self.subtotal,
                "total": self.total,
                "balance_amount": self.balance_amount,
            },
            "difference_m2": self.difference_m2,
            "precision_percent": self.precision_percent,
            "items": [vars(i).copy() for i in self.items],
        }


def _validate_delivered(order, delivered_quantities: dict) -> None:
    known_ids = {item.id for item in order.items}
    errors = []
    for item_id, qty in delivered_quantities.items():
        if item_id not in known_ids:
            errors.append(f"Item {item_id} does not belong to order {order.order_number}")
        if not isinstance(qty, int) or isinstance(qty, bool) or qty < 0:
            errors.append(f"Item {item_id}: delivered quantity must be a non-negative integer")
    if errors:
        raise ValidationFailed(errors)


def reconcile(order, delivered_quantities: dict = None) -> ReconciliationResult:
    """
    Recompute an order's area and amounts for the delivered quantities.

    delivered_quantities maps OrderItem.id -> delivered count; items left out
    are taken as delivered exactly as quoted. Pure: the order is not modified.
    """
    delivered_quantities = delivered_quantities or {}
    _validate_delivered(order, delivered_quantities)

    items = []
    for item in order.items:
        qty = delivered_quantities.get(item.id, item.quantity)
        original_m2 = round(item.quantity * item.m2_per_box, M2_DECIMALS)
        delivered_m2 = round(qty * item.m2_per_box, M2_DECIMALS)
        items.append(ReconciledItem(
            item_id=item.id,
            quantity=item.quantity,
            quantity_delivered=qty,
            m2_per_box=item.m2_per_box,
            original_m2=original_m2,
            delivered_m2=delivered_m2,
            difference_m2=round(delivered_m2 - original_m2, M2_DECIMALS),
        ))

    original_m2 = round(sum(i.original_m2 for i in items), M2_DECIMALS)
    delivered_m2 = round(sum(i.delivered_m2 for i in items), M2_DECIMALS)

    subtotal = calculate_subtotal(delivered_m2, order.price_per_m2)
    total = calculate_total(
        subtotal, order.printing_cost or 0.0, order.die_cut_cost or 0.0, order.shipping_cost or 0.0,
    )

    deposit = order.deposit_amount or 0.0
    if is_paid(order.deposit_status):
        balance = round(max(0.0, total - deposit), 2)
    else:
        balance = round(total * 0.5, 2)

    precision = round(delivered_m2 / original_m2 * 100, 2) if original_m2 else 0.0

    return ReconciliationResult(
        original_m2=original_m2,
        delivered_m2=delivered_m2,
        difference_m2=round(delivered_m2 - original_m2, M2_DECIMALS),
        precision_percent=precision,
        subtotal=subtotal,
        total=total,
        deposit_amount=deposit,
        balance_amount=balance,
        original_total=order.total,
        items=items,
    )


def confirm_quantities(db: Session, order: models.Order, delivered_quantities: dict = None,
                       now: datetime = None, machine: OrderStateMachine = None) -> ReconciliationResult:
    """
    Persist a reconciliation once. Caller commits.

    The order row is claimed with a conditional UPDATE
    (status = ready AND quantities_confirmed = false) before any item is
    touched, so of two concurrent confirmations only one writes.
    """
    machine = machine or OrderStateMachine()
    machine.check_quantity_confirmation(order)
    result = reconcile(order, delivered_quantities)
    now = now or datetime.utcnow()

    rowcount = db.query(models.Order).filter(
        models.Order.id == order.id,
        models.Order.status == models.OrderStatus.READY,
        models.Order.quantities_confirmed.is_(False),
    ).update({
        "quantities_confirmed": True,
        "quantities_confirmed_at": now,
        "delivered_m2": result.delivered_m2,
        "subtotal": result.subtotal,
        "total": result.total,
        "balance_amount": result.balance_amount,
        "updated_at": now,
    }, synchronize_session=False)

    if not rowcount:
        db.rollback()
        logger.warning("Concurrent quantity confirmation lost for order %s", order.order_number)
        raise TransitionNotAllowed(
            f"Quantities for order {order.order_number} were already confirmed", order.status,
        )

    by_id = {r.item_id: r for r in result.items}
    for item in order.items:
        reconciled = by_id[item.id]
        item.quantity_delivered = reconciled.quantity_delivered
        item.delivered_m2 = reconciled.delivered_m2

    db.flush()
    db.expire(order, [
        "quantities_confirmed", "quantities_confirmed_at", "delivered_m2",
        "subtotal", "total", "balance_amount", "updated_at",
    ])
    logger.info(
        "Order %s reconciled: %.4f m2 quoted, %.4f m2 delivered (%.2f%%)",
        order.order_number, result.original_m2, result.delivered_m2, result.precision_percent,
    )
    return result
