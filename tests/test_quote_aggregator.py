"""
Quote aggregation tests: several box models priced as one order.
"""

from types import SimpleNamespace

import pytest

from boxquote.errors import ValidationFailed
from boxquote.pricing_engine import PhoneDiscountPolicy
from boxquote.quote_aggregator import BoxRequest, QuoteAggregator


def _config(**overrides):
    values = dict(
        price_per_m2_standard=700.0,
        price_per_m2_volume=670.0,
        volume_threshold_m2=5000.0,
        min_m2_per_model=3000.0,
        price_per_m2_below_minimum=None,
        free_shipping_min_m2=4000.0,
        free_shipping_max_km=60.0,
        production_days_standard=7,
        production_days_printing=14,
        quote_validity_days=7,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_total_area_is_sum_of_items():
    items = [
        BoxRequest(600, 400, 400, 1000),   # 1.64 m2 each -> 1640
        BoxRequest(300, 200, 200, 5000),   # 0.42 m2 each -> 2100
        BoxRequest(337, 251, 163, 777),
    ]
    quote = QuoteAggregator().aggregate(items, _config())
    assert abs(sum(i.total_m2 for i in quote.items) - quote.total_m2) < 1e-4
    assert len(quote.items) == 3


def test_one_price_for_the_whole_quote():
    items = [BoxRequest(600, 400, 400, 1000), BoxRequest(300, 200, 200, 5000)]
    quote = QuoteAggregator().aggregate(items, _config())
    assert quote.total_m2 == 3740.0
    assert quote.price_per_m2 == 700.0
    assert quote.subtotal == 2618000.0
    assert quote.total == 2618000.0


def test_volume_tier_reached_only_by_combined_area():
    # Neither model reaches 5000 m2 alone: 3280 + 2100 = 5380
    items = [BoxRequest(600, 400, 400, 2000), BoxRequest(300, 200, 200, 5000)]
    quote = QuoteAggregator().aggregate(items, _config())
    assert quote.total_m2 == 5380.0
    assert quote.price_per_m2 == 670.0
    assert quote.subtotal == round(5380.0 * 670.0, 2)


def test_add_on_costs_are_added_once():
    quote = QuoteAggregator().aggregate(
        [BoxRequest(600, 400, 400, 1000)], _config(),
        printing_cost=15000.0, die_cut_cost=5000.0, shipping_cost=2500.0,
    )
    assert quote.subtotal == 1148000.0
    assert quote.total == 1170500.0


def test_shipping_and_days_follow_the_grand_total():
    quote = QuoteAggregator().aggregate(
        [BoxRequest(600, 400, 400, 2500)], _config(), has_printing=True, distance_km=20,
    )
    assert quote.total_m2 == 4100.0
    assert quote.is_free_shipping is True
    assert quote.production_days == 14


def test_oversize_flag_is_per_item():
    items = [BoxRequest(600, 400, 400, 1000), BoxRequest(300, 700, 600, 1000)]
    quote = QuoteAggregator().aggregate(items, _config())
    assert [i.is_oversized for i in quote.items] == [False, True]
    assert any("production limit" in w for w in quote.warnings)


def test_below_minimum_flag_and_surcharge():
    items = [BoxRequest(600, 400, 400, 1000)]
    plain = QuoteAggregator().aggregate(items, _config())
    assert plain.below_minimum is True
    assert plain.below_minimum_surcharge is False
    assert plain.price_per_m2 == 700.0

    surcharged = QuoteAggregator().aggregate(items, _config(price_per_m2_below_minimum=800.0))
    assert surcharged.below_minimum_surcharge is True
    assert surcharged.price_per_m2 == 800.0


def test_phone_policy_uses_discount_bands():
    quote = QuoteAggregator(PhoneDiscountPolicy()).aggregate([BoxRequest(600, 400, 400, 1000)], _config())
    assert quote.pricing_policy == "phone"
    assert quote.price_per_m2 == 630.0  # 1640 m2 -> 10% off 700
    assert quote.production_days == 5


def test_empty_quote_is_rejected():
    with pytest.raises(ValidationFailed) as exc:
        QuoteAggregator().aggregate([], _config())
    assert "At least one item is required" in exc.value.errors


def test_every_invalid_field_is_reported():
    items = [BoxRequest(0, 400, -1, 10), BoxRequest(600, 400, 400, 0)]
    with pytest.raises(ValidationFailed) as exc:
        QuoteAggregator().aggregate(items, _config())
    assert len(exc.value.errors) == 3
    assert "Item 2: quantity must be a positive integer" in exc.value.errors


def test_custom_flag_follows_catalogue_id():
    items = [BoxRequest(600, 400, 400, 1000, box_id=12), BoxRequest(600, 400, 400, 1000)]
    quote = QuoteAggregator().aggregate(items, _config())
    assert [i.is_custom for i in quote.items] == [False, True]
