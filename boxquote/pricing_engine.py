"""
Pricing engine: price per m2, subtotal, shipping eligibility, production days.

Pure math over the quote's TOTAL area and the active PricingConfig.
Volume tiers apply to the whole order, so nothing here is ever computed
per line item.

Two independent rule sets share the same sheet geometry:
- TieredPricingPolicy: config-driven standard / volume / below-minimum prices
  (dashboard, web, email and WhatsApp quotes)
- PhoneDiscountPolicy: the phone bot's fixed base price with discount bands
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, timedelta

from .models import Channel


def get_price_per_m2(total_m2: float, config) -> float:
    """
    Price per m2 for the whole quote.

    Below min_m2_per_model a configured surcharge price wins over the tiers.
    Otherwise the volume price applies from volume_threshold_m2 (inclusive).
    """
    below_minimum_price = config.price_per_m2_below_minimum
    if below_minimum_price is not None and total_m2 < config.min_m2_per_model:
        return below_minimum_price
    if total_m2 >= config.volume_threshold_m2:
        return config.price_per_m2_volume
    return config.price_per_m2_standard


def is_below_minimum(total_m2: float, config) -> bool:
    return total_m2 < config.min_m2_per_model


def below_minimum_price(config, fallback_markup: float = 1.20) -> float:
    """Price for an accepted below-minimum order: the configured surcharge, else standard plus markup."""
    if config.price_per_m2_below_minimum is not None:
        return config.price_per_m2_below_minimum
    return round(config.price_per_m2_standard * fallback_markup, 2)


def calculate_subtotal(total_m2: float, price_per_m2: float) -> float:
    return round(total_m2 * price_per_m2, 2)


def is_free_shipping(total_m2: float, distance_km, config) -> bool:
    """Full truck (free_shipping_min_m2) within free_shipping_max_km. Unknown distance is never free."""
    if distance_km is None:
        return False
    return total_m2 >= config.free_shipping_min_m2 and distance_km <= config.free_shipping_max_km


def get_shipping_notes(total_m2: float, distance_km, config) -> str:
    if distance_km is None:
        return "Client distance not specified. Shipping cost to be quoted."

    if is_free_shipping(total_m2, distance_km, config):
        return (
            f"Free shipping included (order >= {config.free_shipping_min_m2:,.0f} m2 "
            f"and distance <= {config.free_shipping_max_km:g} km)"
        )

    reasons = []
    if total_m2 < config.free_shipping_min_m2:
        reasons.append(f"order under {config.free_shipping_min_m2:,.0f} m2")
    if distance_km > config.free_shipping_max_km:
        reasons.append(f"distance over {config.free_shipping_max_km:g} km")
    return f"Shipping to be quoted ({', '.join(reasons)})"


def get_production_days(has_printing: bool, config) -> int:
    return config.production_days_printing if has_printing else config.production_days_standard


def calculate_total(subtotal: float, printing_cost: float = 0.0,
                    die_cut_cost: float = 0.0, shipping_cost: float = 0.0) -> float:
    return round(subtotal + printing_cost + die_cut_cost + shipping_cost, 2)


def calculate_payment_amounts(total: float) -> tuple:
    """50% deposit up front, the rest on delivery. Returns (deposit, balance)."""
    deposit = round(total / 2, 2)
    balance = round(total - deposit, 2)
    return deposit, balance


def calculate_delivery_date(production_days: int, start: date) -> date:
    """Add production_days business days (Mon-Fri) to start."""
    current = start
    added = 0
    while added < production_days:
        current += timedelta(days=1)
        if current.weekday() < 5:
            added += 1
    return current


def calculate_valid_until(validity_days: int, start: date) -> date:
    return start + timedelta(days=validity_days)


# --- Pricing policies ---

class PricingPolicy(ABC):
    """One pricing rule set over the shared geometry."""

    name = ""

    @abstractmethod
    def price_per_m2(self, total_m2: float, config) -> float:
        pass

    @abstractmethod
    def production_days(self, has_printing: bool, total_m2: float, config) -> int:
        pass

    def applies_below_minimum(self, total_m2: float, config) -> bool:
        return False


class TieredPricingPolicy(PricingPolicy):
    """Standard / volume / below-minimum tiers from the active PricingConfig."""

    name = "tiered"

    def price_per_m2(self, total_m2: float, config) -> float:
        return get_price_per_m2(total_m2, config)

    def production_days(self, has_printing: bool, total_m2: float, config) -> int:
        return get_production_days(has_printing, config)

    def applies_below_minimum(self, total_m2: float, config) -> bool:
        return config.price_per_m2_below_minimum is not None and is_below_minimum(total_m2, config)


@dataclass(frozen=True)
class DiscountBand:
    min_m2: float
    discount: float
    label: str


class PhoneDiscountPolicy(PricingPolicy):
    """
    Phone bot pricing: fixed base price per m2 minus a volume discount.
    Lead time comes from area bands instead of the config.
    """

    name = "phone"

    BASE_PRICE_PER_M2 = 700.0

    # Checked top-down, first match wins
    DISCOUNT_BANDS = [
        DiscountBand(5000, 0.20, "20% wholesale"),
        DiscountBand(3000, 0.15, "15% volume"),
        DiscountBand(1000, 0.10, "10% volume"),
        DiscountBand(500, 0.05, "5% volume"),
    ]

    # (max_m2 inclusive, business days)
    LEAD_TIME_BANDS = [
        (1000, 3),
        (3000, 5),
        (5000, 7),
        (math.inf, 10),
    ]

    def discount_for(self, total_m2: float) -> DiscountBand:
        for band in self.DISCOUNT_BANDS:
            if total_m2 >= band.min_m2:
                return band
        return DiscountBand(0, 0.0, "no discount")

    def price_per_m2(self, total_m2: float, config) -> float:
        band = self.discount_for(total_m2)
        return round(self.BASE_PRICE_PER_M2 * (1 - band.discount), 2)

    def production_days(self, has_printing: bool, total_m2: float, config) -> int:
        days = self.LEAD_TIME_BANDS[-1][1]
        for max_m2, band_days in self.LEAD_TIME_BANDS:
            if total_m2 <= max_m2:
                days = band_days
                break
        if has_printing:
            days = max(days, config.production_days_printing)
        return days


_TIERED = TieredPricingPolicy()
_PHONE = PhoneDiscountPolicy()


def get_pricing_policy(channel) -> PricingPolicy:
    """Pick the pricing rule set for a sales channel."""
    channel = Channel(channel) if channel is not None else Channel.MANUAL
    if channel == Channel.PHONE:
        return _PHONE
    return _TIERED
