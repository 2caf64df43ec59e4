"""
QuoteAssembler: rounding policy, packaging, and output checks.

Every currency field is rounded to the nearest whole unit on its own, from
the unrounded figure. Totals are NOT re-summed from rounded categories, so
the rounded category values may differ from the rounded total by up to one
unit per category. validate() enforces exactly that bound.
"""

import math

from .errors import QuoteInvariantError
from .models import (
    MARKUP_CATEGORIES, AggregateQuote, CategoryCost, Quote, ordered_categories,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    magnitude = abs(value)
    whole = math.floor(magnitude)
    # exact subtraction: 0.49999999999999994 stays below the half
    if magnitude - whole >= 0.5:
        whole += 1
    return -whole if value < 0 else whole


class QuoteAssembler:

    def __init__(self, pm_fee_share: float = 0.20):
        self.pm_fee_share = pm_fee_share

    def assemble(self, raw: dict) -> Quote:
        """
        Package one line item.

        `raw` is the line item calculator output plus the power estimate
        ("power_watts", "power_amps") and the unrounded "detail" lines.
        """
        internal = raw["internal"]
        sell = raw["sell"]
        breakdown = {
            cat: CategoryCost(
                internal=round_half_up(internal.get(cat, 0.0)),
                sell=round_half_up(sell.get(cat, 0.0)),
            )
            for cat in ordered_categories(list(internal) + list(sell))
        }
        total_internal = sum(internal.values())
        total_sell = sum(sell.values())

        quote = Quote(
            label=raw.get("label"),
            screen_area=round(raw["screen_area"], 2),
            breakdown=breakdown,
            total_internal_cost=round_half_up(total_internal),
            sell_price=round_half_up(total_sell),
            gross_profit=round_half_up(total_sell - total_internal),
            pm_fee=round_half_up(sell.get("expense", 0.0) * self.pm_fee_share),
            margin_percent=raw["margin_percent"],
            power_watts=round_half_up(raw.get("power_watts", 0.0)),
            power_amps=raw.get("power_amps", 0),
            detail_breakdown={k: round_half_up(v) for k, v in raw.get("detail", {}).items()},
            warnings=list(raw.get("warnings", [])),
        )
        self.validate(quote)
        return quote

    def assemble_aggregate(self, totals: dict) -> AggregateQuote:
        """Package summed totals. Inputs are already whole units, so only the
        screen area actually changes."""
        breakdown = {
            cat: CategoryCost(
                internal=round_half_up(cost["internal"]),
                sell=round_half_up(cost["sell"]),
            )
            for cat, cost in totals["breakdown"].items()
        }
        aggregate = AggregateQuote(
            item_count=totals["item_count"],
            screen_area=round(totals["screen_area"], 2),
            breakdown=breakdown,
            total_internal_cost=round_half_up(totals["total_internal_cost"]),
            sell_price=round_half_up(totals["sell_price"]),
            gross_profit=round_half_up(totals["gross_profit"]),
            pm_fee=round_half_up(totals["pm_fee"]),
            margin_percent=totals.get("margin_percent"),
            power_watts=round_half_up(totals["power_watts"]),
            power_amps=totals["power_amps"],
            detail_breakdown={
                k: round_half_up(v) for k, v in totals.get("detail_breakdown", {}).items()
            },
            warnings=list(totals.get("warnings", [])),
        )
        self.validate(aggregate, item_count=totals["item_count"])
        return aggregate

    def validate(self, quote, item_count: int = 1):
        """
        Post-rounding checks. Tolerance is one unit per category per item.

        - no NaN / inf anywhere
        - every category value >= 0
        - rounded category sums within tolerance of the rounded totals
        - marked-up categories x (1 - margin) within tolerance of internal cost
          (line items only; an aggregate margin is a label, not a derivation)
        """
        numbers = [quote.screen_area, quote.total_internal_cost, quote.sell_price,
                   quote.gross_profit, quote.pm_fee, quote.power_watts]
        for cost in quote.breakdown.values():
            numbers.extend((cost.internal, cost.sell))
        if not all(math.isfinite(n) for n in numbers):
            raise QuoteInvariantError("Quote contains a non-finite value", field="quote")

        for cat, cost in quote.breakdown.items():
            if cost.internal < 0 or cost.sell < 0:
                raise QuoteInvariantError(
                    f"Negative {cat} cost in quote", field=cat, value=cost.sell
                )

        tolerance = len(quote.breakdown) * max(item_count, 1)
        sell_sum = sum(c.sell for c in quote.breakdown.values())
        internal_sum = sum(c.internal for c in quote.breakdown.values())
        if abs(sell_sum - quote.sell_price) > tolerance:
            raise QuoteInvariantError(
                f"Category sells sum to {sell_sum}, sell price is {quote.sell_price}",
                field="sell_price", value=quote.sell_price,
            )
        if abs(internal_sum - quote.total_internal_cost) > tolerance:
            raise QuoteInvariantError(
                f"Category costs sum to {internal_sum}, "
                f"internal cost is {quote.total_internal_cost}",
                field="total_internal_cost", value=quote.total_internal_cost,
            )

        margin = quote.margin_percent
        if margin is not None and isinstance(quote, Quote):
            marked_up = sum(quote.breakdown[c].sell for c in MARKUP_CATEGORIES
                            if c in quote.breakdown)
            implied_cost = marked_up * (1.0 - margin / 100.0)
            if abs(implied_cost - quote.total_internal_cost) > tolerance:
                raise QuoteInvariantError(
                    f"Sell {marked_up} at {margin}% margin implies cost {implied_cost:.2f}, "
                    f"expected {quote.total_internal_cost}",
                    field="margin_percent", value=margin,
                )
