"""
Explicit transition tables for quotes, public quotes and orders.

Every machine splits into a side-effect-free check (returns the target
status or raises) and an apply that mutates the ORM object. Callers commit;
a rejected transition leaves the record exactly as it was.
"""

import logging
from datetime import date, datetime

from .config import settings
from .errors import DuplicateConversion, TransitionNotAllowed, ValidationFailed
from .models import (
    ORDER_WORKFLOW,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    PublicQuoteStatus,
    QuoteStatus,
)

logger = logging.getLogger(__name__)


def is_paid(status) -> bool:
    return status is not None and PaymentStatus(status) == PaymentStatus.PAID


class QuoteStateMachine:
    # action -> (allowed source states, target state)
    TRANSITIONS = {
        "send": ({QuoteStatus.DRAFT}, QuoteStatus.SENT),
        "approve": ({QuoteStatus.DRAFT, QuoteStatus.SENT}, QuoteStatus.APPROVED),
        "reject": ({QuoteStatus.DRAFT, QuoteStatus.SENT}, QuoteStatus.REJECTED),
        "expire": ({QuoteStatus.DRAFT, QuoteStatus.SENT, QuoteStatus.APPROVED}, QuoteStatus.EXPIRED),
        "convert": ({QuoteStatus.APPROVED}, QuoteStatus.CONVERTED),
    }

    # Set once, never overwritten
    STAMPS = {
        QuoteStatus.SENT: "sent_at",
        QuoteStatus.APPROVED: "approved_at",
        QuoteStatus.REJECTED: "rejected_at",
        QuoteStatus.EXPIRED: "expired_at",
    }

    def check(self, quote, action: str) -> QuoteStatus:
        if action not in self.TRANSITIONS:
            raise ValidationFailed([f"Unknown quote action '{action}'"])
        allowed_from, target = self.TRANSITIONS[action]
        current = QuoteStatus(quote.status)
        if current in allowed_from:
            return target
        if action == "convert" and current == QuoteStatus.CONVERTED:
            raise DuplicateConversion(f"Quote {quote.quote_number} was already converted", current)
        raise TransitionNotAllowed(
            f"Cannot {action} quote {quote.quote_number} in status '{current.value}'", current,
        )

    def apply(self, quote, action: str, now: datetime = None) -> QuoteStatus:
        target = self.check(quote, action)
        now = now or datetime.utcnow()
        quote.status = target
        stamp = self.STAMPS.get(target)
        if stamp and getattr(quote, stamp) is None:
            setattr(quote, stamp, now)
        quote.updated_at = now
        logger.info("Quote %s -> %s", quote.quote_number, target.value)
        return target

    def can_edit_items(self, quote) -> bool:
        return QuoteStatus(quote.status) == QuoteStatus.DRAFT

    def ensure_editable(self, quote) -> None:
        if not self.can_edit_items(quote):
            raise TransitionNotAllowed(
                f"Items can only be edited in draft, quote is '{QuoteStatus(quote.status).value}'",
                quote.status,
            )

    def can_delete(self, quote) -> bool:
        return QuoteStatus(quote.status) != QuoteStatus.CONVERTED

    def ensure_deletable(self, quote) -> None:
        if not self.can_delete(quote):
            raise TransitionNotAllowed("Converted quotes cannot be deleted", quote.status)

    def is_elapsed(self, quote, today: date) -> bool:
        return quote.valid_until is not None and today > quote.valid_until

    def expire_if_elapsed(self, quote, today: date = None, now: datetime = None) -> bool:
        """System-driven expiry. Returns True when the quote was expired by this call."""
        today = today or date.today()
        allowed_from, _ = self.TRANSITIONS["expire"]
        if QuoteStatus(quote.status) not in allowed_from or not self.is_elapsed(quote, today):
            return False
        self.apply(quote, "expire", now)
        return True


class PublicQuoteStateMachine:
    TRANSITIONS = {
        "contact": ({PublicQuoteStatus.PENDING}, PublicQuoteStatus.CONTACTED),
        "convert": ({PublicQuoteStatus.PENDING, PublicQuoteStatus.CONTACTED}, PublicQuoteStatus.CONVERTED),
        "reject": ({PublicQuoteStatus.PENDING, PublicQuoteStatus.CONTACTED}, PublicQuoteStatus.REJECTED),
    }

    # Dashboard status updates map onto actions
    ACTION_FOR_STATUS = {
        PublicQuoteStatus.CONTACTED: "contact",
        PublicQuoteStatus.REJECTED: "reject",
    }

    def check(self, public_quote, action: str) -> PublicQuoteStatus:
        if action not in self.TRANSITIONS:
            raise ValidationFailed([f"Unknown public quote action '{action}'"])
        allowed_from, target = self.TRANSITIONS[action]
        current = PublicQuoteStatus(public_quote.status)
        if current in allowed_from:
            return target
        if action == "convert" and current == PublicQuoteStatus.CONVERTED:
            raise DuplicateConversion(f"Public quote {public_quote.id} was already converted", current)
        raise TransitionNotAllowed(
            f"Cannot {action} public quote {public_quote.id} in status '{current.value}'", current,
        )

    def apply(self, public_quote, action: str, now: datetime = None) -> PublicQuoteStatus:
        target = self.check(public_quote, action)
        now = now or datetime.utcnow()
        public_quote.status = target
        if target == PublicQuoteStatus.CONVERTED:
            public_quote.converted_at = now
        public_quote.updated_at = now
        return target

    def action_for(self, status) -> str:
        try:
            status = PublicQuoteStatus(status)
        except ValueError:
            raise ValidationFailed([f"Unknown public quote status '{status}'"])
        if status not in self.ACTION_FOR_STATUS:
            raise ValidationFailed([f"Status '{status.value}' cannot be set directly"])
        return self.ACTION_FOR_STATUS[status]


class OrderStateMachine:
    """
    pending_deposit -> confirmed -> in_production -> ready -> shipped -> delivered,
    plus cancelled from any state short of delivered.

    Backward moves depend on the policy:
    - free: any move between workflow states (drag-and-drop board)
    - forward_only: only the next adjacent state, or cancel
    Moving into the current state is always rejected, and cancelled is final.
    Every state past pending_deposit needs the deposit paid.
    """

    FREE = "free"
    FORWARD_ONLY = "forward_only"
    POLICIES = (FREE, FORWARD_ONLY)

    # Entering a state stamps its column
    STAMPS = {
        OrderStatus.CONFIRMED: "confirmed_at",
        OrderStatus.IN_PRODUCTION: "production_started_at",
        OrderStatus.READY: "ready_at",
        OrderStatus.SHIPPED: "shipped_at",
        OrderStatus.DELIVERED: "delivered_at",
        OrderStatus.CANCELLED: "cancelled_at",
    }

    CANCELLABLE = {
        OrderStatus.PENDING_DEPOSIT,
        OrderStatus.CONFIRMED,
        OrderStatus.IN_PRODUCTION,
        OrderStatus.READY,
        OrderStatus.SHIPPED,
    }

    # Reachable without a paid deposit
    UNPAID_TARGETS = {OrderStatus.PENDING_DEPOSIT, OrderStatus.CANCELLED}

    def __init__(self, policy: str = None):
        policy = policy or settings.ORDER_TRANSITION_POLICY
        if policy not in self.POLICIES:
            raise ValueError(f"Unknown order transition policy '{policy}'")
        self.policy = policy

    @staticmethod
    def parse_status(value) -> OrderStatus:
        try:
            return OrderStatus(value)
        except ValueError:
            valid = ", ".join(s.value for s in OrderStatus)
            raise ValidationFailed([f"Invalid order status '{value}'. Valid: {valid}"])

    def allowed_targets(self, current: OrderStatus) -> list:
        current = OrderStatus(current)
        if current == OrderStatus.CANCELLED:
            return []
        targets = []
        if self.policy == self.FREE:
            targets = [s for s in ORDER_WORKFLOW if s != current]
        else:
            index = ORDER_WORKFLOW.index(current)
            if index + 1 < len(ORDER_WORKFLOW):
                targets = [ORDER_WORKFLOW[index + 1]]
        if current in self.CANCELLABLE:
            targets.append(OrderStatus.CANCELLED)
        return targets

    def check_transition(self, order, target) -> OrderStatus:
        """Validate a move without touching the order."""
        target = self.parse_status(target)
        current = OrderStatus(order.status)

        if target == current:
            raise TransitionNotAllowed(f"Order {order.order_number} is already '{current.value}'", current)
        if target not in self.allowed_targets(current):
            raise TransitionNotAllowed(
                f"Cannot move order {order.order_number} from '{current.value}' to '{target.value}'",
                current,
            )
        if target not in self.UNPAID_TARGETS and not is_paid(order.deposit_status):
            raise TransitionNotAllowed(
                f"Cannot move order {order.order_number} to '{target.value}' before the deposit is paid",
                current,
            )
        return target

    def apply_transition(self, order, target, now: datetime = None, reason: str = None) -> OrderStatus:
        target = self.check_transition(order, target)
        now = now or datetime.utcnow()
        previous = order.status
        order.status = target
        setattr(order, self.STAMPS[target], now)
        if target == OrderStatus.CANCELLED:
            order.cancellation_reason = reason
        order.updated_at = now
        logger.info("Order %s: %s -> %s", order.order_number, OrderStatus(previous).value, target.value)
        return target

    # --- Payments ---

    def check_payment(self, order, payment_type: str, method) -> PaymentMethod:
        errors = []
        if payment_type not in ("deposit", "balance"):
            errors.append("payment_type must be 'deposit' or 'balance'")
        try:
            method = PaymentMethod(method)
        except ValueError:
            errors.append(
                f"Invalid payment method '{method}'. Valid: {', '.join(m.value for m in PaymentMethod)}"
            )
        if errors:
            raise ValidationFailed(errors)

        current = OrderStatus(order.status)
        if current == OrderStatus.CANCELLED:
            raise TransitionNotAllowed("Payments cannot be registered on cancelled orders", current)
        if payment_type == "deposit":
            if is_paid(order.deposit_status):
                raise TransitionNotAllowed("Deposit was already paid", current)
        else:
            if not is_paid(order.deposit_status):
                raise TransitionNotAllowed("Balance cannot be registered before the deposit", current)
            if is_paid(order.balance_status):
                raise TransitionNotAllowed("Balance was already paid", current)
        return method

    def register_payment(self, order, payment_type: str, method, now: datetime = None) -> float:
        """Mark the deposit or balance paid. Returns the amount registered."""
        method = self.check_payment(order, payment_type, method)
        now = now or datetime.utcnow()
        setattr(order, f"{payment_type}_status", PaymentStatus.PAID)
        setattr(order, f"{payment_type}_method", method)
        setattr(order, f"{payment_type}_paid_at", now)
        order.updated_at = now
        amount = getattr(order, f"{payment_type}_amount")
        logger.info("Order %s: %s of %.2f paid by %s", order.order_number, payment_type, amount, method.value)
        return amount

    # --- Quantity confirmation ---

    def check_quantity_confirmation(self, order) -> None:
        current = OrderStatus(order.status)
        if order.quantities_confirmed:
            raise TransitionNotAllowed(f"Quantities for order {order.order_number} were already confirmed", current)
        if current != OrderStatus.READY:
            raise TransitionNotAllowed(
                f"Quantities can only be confirmed when the order is ready, it is '{current.value}'", current,
            )
