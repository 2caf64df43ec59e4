"""
Aggregation tests.

Tests:
1-2. Additivity of totals and key-wise breakdown merge
3-5. Margin label: common, mixed, override
6-8. Fail-fast: empty input, failed item, invalid override
9.   Category order with missing and extra keys
"""

import pytest

from quote_engine import aggregate_quotes
from quote_engine.errors import AggregationError, InvalidMarginError
from quote_engine.models import CATEGORIES, CategoryCost, LineItemInput, Quote


def _manual_quote(label, breakdown, margin=30.0):
    """Hand-built quote with whole-unit values, for merge tests."""
    internal = sum(c.internal for c in breakdown.values())
    sell = sum(c.sell for c in breakdown.values())
    return Quote(
        label=label,
        screen_area=10,
        breakdown=breakdown,
        total_internal_cost=internal,
        sell_price=sell,
        gross_profit=sell - internal,
        pm_fee=0,
        margin_percent=margin,
        power_watts=350,
        power_amps=3,
    )


# ============================================================
# 1-2. Additivity
# ============================================================

def test_aggregate_sums_totals(engine, indoor_item, outdoor_new_item):
    a = engine.price_line_item(indoor_item)
    b = engine.price_line_item(outdoor_new_item)
    total = aggregate_quotes([a, b])

    tolerance = len(CATEGORIES)
    assert total.item_count == 2
    assert abs(total.sell_price - (a.sell_price + b.sell_price)) <= tolerance
    assert total.total_internal_cost == a.total_internal_cost + b.total_internal_cost
    assert total.screen_area == 100
    assert total.power_amps == a.power_amps + b.power_amps
    assert total.gross_profit == a.gross_profit + b.gross_profit


def test_aggregate_merges_breakdown_by_key(engine, indoor_item, outdoor_new_item):
    a = engine.price_line_item(indoor_item)
    b = engine.price_line_item(outdoor_new_item)
    total = aggregate_quotes([a, b])
    assert list(total.breakdown) == CATEGORIES
    for cat in CATEGORIES:
        assert total.breakdown[cat].sell == a.breakdown[cat].sell + b.breakdown[cat].sell
        assert total.breakdown[cat].internal == (
            a.breakdown[cat].internal + b.breakdown[cat].internal
        )
    for label in a.detail_breakdown:
        assert total.detail_breakdown[label] == (
            a.detail_breakdown[label] + b.detail_breakdown[label]
        )


def test_aggregate_of_one_matches_item(engine, indoor_item):
    quote = engine.price_line_item(indoor_item)
    total = aggregate_quotes([quote])
    assert total.sell_price == quote.sell_price
    assert total.breakdown == quote.breakdown
    assert total.margin_percent == quote.margin_percent


def test_order_does_not_change_totals(engine, indoor_item, outdoor_new_item):
    a = engine.price_line_item(indoor_item)
    b = engine.price_line_item(outdoor_new_item)
    assert aggregate_quotes([a, b]).sell_price == aggregate_quotes([b, a]).sell_price


# ============================================================
# 3-5. Margin label
# ============================================================

def test_common_margin_is_kept(engine, indoor_item, outdoor_new_item):
    total = aggregate_quotes([engine.price_line_item(indoor_item),
                              engine.price_line_item(outdoor_new_item)])
    assert total.margin_percent == 30


def test_mixed_margins_left_unset(engine, indoor_item):
    a = engine.price_line_item(indoor_item)
    b = engine.price_line_item(
        LineItemInput(**{**indoor_item.model_dump(), "target_margin_percent": 40})
    )
    total = aggregate_quotes([a, b])
    assert total.margin_percent is None
    # the sum is still exact; only the label is withheld
    assert total.sell_price == a.sell_price + b.sell_price


def test_override_labels_without_repricing(engine, indoor_item):
    a = engine.price_line_item(indoor_item)
    total = aggregate_quotes([a, a], margin_override=35)
    assert total.margin_percent == 35
    assert total.sell_price == 2 * a.sell_price


# ============================================================
# 6-8. Fail-fast
# ============================================================

def test_empty_input_rejected():
    with pytest.raises(AggregationError):
        aggregate_quotes([])


def test_failed_item_blocks_aggregate(engine, indoor_item):
    good = engine.price_line_item(indoor_item)
    failure = InvalidMarginError(100)
    with pytest.raises(AggregationError) as exc:
        aggregate_quotes([good, failure])
    assert exc.value.field == "target_margin_percent"
    assert exc.value.__cause__ is failure


def test_non_quote_item_rejected(engine, indoor_item):
    with pytest.raises(AggregationError):
        aggregate_quotes([engine.price_line_item(indoor_item), None])


@pytest.mark.parametrize("override", [100, -1, float("nan")])
def test_invalid_override_rejected(engine, indoor_item, override):
    with pytest.raises(InvalidMarginError) as exc:
        aggregate_quotes([engine.price_line_item(indoor_item)], margin_override=override)
    assert exc.value.field == "margin_override"


# ============================================================
# 9. Category order
# ============================================================

def test_missing_and_extra_keys_merge_in_canonical_order():
    a = _manual_quote("A", {
        "hardware": CategoryCost(internal=100, sell=143),
        "permits": CategoryCost(internal=10, sell=10),
    })
    b = _manual_quote("B", {
        "hardware": CategoryCost(internal=200, sell=286),
        "bond": CategoryCost(internal=0, sell=5),
    })
    total = aggregate_quotes([a, b])
    assert list(total.breakdown) == ["hardware", "bond", "permits"]
    assert total.breakdown["hardware"] == CategoryCost(internal=300, sell=429)
    assert total.breakdown["permits"] == CategoryCost(internal=10, sell=10)
    assert total.breakdown["bond"] == CategoryCost(internal=0, sell=5)
    assert total.sell_price == 444


def test_warnings_are_prefixed_with_label(engine):
    bad = engine.price_line_item(LineItemInput(label="Left wing", width=-1, height=5))
    good = engine.price_line_item(LineItemInput(label="Center", width=10, height=5))
    total = aggregate_quotes([good, bad])
    assert len(total.warnings) == 1
    assert total.warnings[0].startswith("Left wing: width")
