"""
Quote aggregation: N box line items -> one priced quote.

Geometry runs per item; pricing runs ONCE over the grand total area, so the
whole quote gets a single price per m2 (small models ride on the volume of
big ones in the same order). Each item keeps its own oversize flag.
"""

from dataclasses import dataclass, field

from . import geometry
from .pricing_engine import (
    PricingPolicy,
    TieredPricingPolicy,
    calculate_subtotal,
    calculate_total,
    get_shipping_notes,
    is_below_minimum,
    is_free_shipping,
)
from .validation import validate_line_items


@dataclass(frozen=True)
class BoxRequest:
    length_mm: int
    width_mm: int
    height_mm: int
    quantity: int
    box_id: int = None


@dataclass
class PricedItem:
    box_id: int
    length_mm: int
    width_mm: int
    height_mm: int
    unfolded_width_mm: int
    unfolded_length_mm: int
    m2_per_box: float
    quantity: int
    total_m2: float
    is_custom: bool
    is_oversized: bool


@dataclass
class AggregatedQuote:
    items: list
    total_m2: float
    price_per_m2: float
    subtotal: float
    printing_cost: float
    die_cut_cost: float
    shipping_cost: float
    total: float
    has_printing: bool
    is_free_shipping: bool
    shipping_notes: str
    production_days: int
    below_minimum: bool
    below_minimum_surcharge: bool
    pricing_policy: str
    warnings: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "items": [vars(i).copy() for i in self.items],
            "total_m2": self.total_m2,
            "price_per_m2": self.price_per_m2,
            "subtotal": self.subtotal,
            "printing_cost": self.printing_cost,
            "die_cut_cost": self.die_cut_cost,
            "shipping_cost": self.shipping_cost,
            "total": self.total,
            "has_printing": self.has_printing,
            "is_free_shipping": self.is_free_shipping,
            "shipping_notes": self.shipping_notes,
            "production_days": self.production_days,
            "below_minimum": self.below_minimum,
            "below_minimum_surcharge": self.below_minimum_surcharge,
            "pricing_policy": self.pricing_policy,
            "warnings": list(self.warnings),
        }


class QuoteAggregator:
    """Prices a list of BoxRequests under one PricingPolicy."""

    def __init__(self, policy: PricingPolicy = None):
        self.policy = policy or TieredPricingPolicy()

    def price_item(self, request: BoxRequest) -> PricedItem:
        sheet = geometry.calculate_unfolded(request.length_mm, request.width_mm, request.height_mm)
        return PricedItem(
            box_id=request.box_id,
            length_mm=request.length_mm,
            width_mm=request.width_mm,
            height_mm=request.height_mm,
            unfolded_width_mm=sheet.sheet_width_mm,
            unfolded_length_mm=sheet.sheet_length_mm,
            m2_per_box=sheet.m2,
            quantity=request.quantity,
            total_m2=geometry.calculate_total_m2(sheet.m2, request.quantity),
            is_custom=request.box_id is None,
            is_oversized=geometry.is_oversized(request.length_mm, request.width_mm, request.height_mm),
        )

    def aggregate(
        self,
        requests: list,
        config,
        has_printing: bool = False,
        distance_km: float = None,
        printing_cost: float = 0.0,
        die_cut_cost: float = 0.0,
        shipping_cost: float = 0.0,
    ) -> AggregatedQuote:
        validate_line_items(requests)

        items = [self.price_item(r) for r in requests]
        grand_total_m2 = round(sum(i.total_m2 for i in items), geometry.M2_DECIMALS)

        price_per_m2 = self.policy.price_per_m2(grand_total_m2, config)
        subtotal = calculate_subtotal(grand_total_m2, price_per_m2)
        total = calculate_total(subtotal, printing_cost or 0.0, die_cut_cost or 0.0, shipping_cost or 0.0)

        warnings = []
        for item in items:
            warnings.extend(geometry.box_warnings(
                item.length_mm, item.width_mm, item.height_mm,
                item.total_m2, config.min_m2_per_model,
            ))

        return AggregatedQuote(
            items=items,
            total_m2=grand_total_m2,
            price_per_m2=price_per_m2,
            subtotal=subtotal,
            printing_cost=printing_cost or 0.0,
            die_cut_cost=die_cut_cost or 0.0,
            shipping_cost=shipping_cost or 0.0,
            total=total,
            has_printing=has_printing,
            is_free_shipping=is_free_shipping(grand_total_m2, distance_km, config),
            shipping_notes=get_shipping_notes(grand_total_m2, distance_km, config),
            production_days=self.policy.production_days(has_printing, grand_total_m2, config),
            below_minimum=is_below_minimum(grand_total_m2, config),
            below_minimum_surcharge=self.policy.applies_below_minimum(grand_total_m2, config),
            pricing_policy=self.policy.name,
            warnings=warnings,
        )
