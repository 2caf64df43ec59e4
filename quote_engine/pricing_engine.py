"""
Pricing Engine: the public entry point.

Runs one or more line items through the calculation stages and packages
the result:

    LineItemInput -> LineItemCalculator -> PowerModel -> detail breakdown
                  -> QuoteAssembler -> Quote
    [Quote, ...]  -> aggregate_quotes -> AggregateQuote

Pure math, no I/O. Each call captures a single RuleSet up front, so a rule
reload mid-call cannot mix two rate cards into one quote.
"""

import logging
from typing import List, Optional, Sequence, Union

from .aggregator import aggregate_quotes
from .assembler import QuoteAssembler
from .calculators import LineItemCalculator, PowerModel, build_detail_breakdown, markup_factor
from .models import AggregateQuote, LineItemInput, Quote
from .rules import RuleSet, get_active_rules

logger = logging.getLogger(__name__)

ItemLike = Union[LineItemInput, dict]


def _as_input(item: ItemLike) -> LineItemInput:
    if isinstance(item, LineItemInput):
        return item
    return LineItemInput.from_fields(item)


def _with_margin(item: LineItemInput, margin_percent) -> LineItemInput:
    # Rebuild rather than model_copy so the new value is validated
    return LineItemInput(**{**item.model_dump(), "target_margin_percent": margin_percent})


class PricingEngine:
    """
    Prices line items against a RuleSet.
    With no explicit rules, the process-wide active rules are read per call.
    """

    MARGIN_OPTIONS = [20, 25, 30, 35, 40]

    def __init__(self, rules: Optional[RuleSet] = None):
        self.rules = rules

    def _current_rules(self) -> RuleSet:
        return self.rules if self.rules is not None else get_active_rules()

    def price_line_item(self, item: ItemLike) -> Quote:
        """Price one line item. Raises InvalidMarginError for a margin outside [0, 100)."""
        return self._price(_as_input(item), self._current_rules())

    def price_project(self, items: Sequence[ItemLike],
                      margin_override: Optional[float] = None) -> AggregateQuote:
        """
        Price every item and fold them into one AggregateQuote.
        Fail-fast: the first item that raises aborts the whole project.
        """
        rules = self._current_rules()
        logger.info("Pricing project with %d line items", len(items))
        quotes = [self._price(_as_input(item), rules) for item in items]
        return aggregate_quotes(quotes, margin_override=margin_override,
                                assembler=QuoteAssembler(rules.pm_fee_share))

    def price_screens(self, base_fields: dict, screens: Optional[List[dict]] = None,
                      margin_override: Optional[float] = None) -> AggregateQuote:
        """
        Multi-screen form: `base_fields` is the active screen, each entry in
        `screens` holds only the fields that differ from it.
        """
        items = [dict(base_fields)]
        items.extend({**base_fields, **screen} for screen in (screens or []))
        return self.price_project(items, margin_override=margin_override)

    def margin_options(self, item: ItemLike) -> dict:
        """
        Returns: {"20": sell_price, "25": ..., "40": ...} for MARGIN_OPTIONS.
        """
        item = _as_input(item)
        rules = self._current_rules()
        return {
            str(pct): self._price(
                _with_margin(item, float(pct)), rules
            ).sell_price
            for pct in self.MARGIN_OPTIONS
        }

    def recalculate_with_margin(self, item: ItemLike, margin_percent: float) -> Quote:
        """Reprice an item at a new target margin."""
        item = _as_input(item)
        return self._price(
            _with_margin(item, margin_percent),
            self._current_rules(),
        )

    def build_assumptions(self, item: ItemLike, quote: Quote) -> list:
        """
        Human-readable notes for the proposal: how the price was built and
        anything the engine had to normalize.
        """
        item = _as_input(item)
        rules = self._current_rules()
        assumptions = [
            "Sell prices use a %.1f%% target margin (cost x %.4f)." % (
                quote.margin_percent, markup_factor(quote.margin_percent)),
            PowerModel(rules).assumption(),
        ]
        if item.pixel_pitch is not None and all(
            item.pixel_pitch <= max_pitch for max_pitch, _ in rules.pitch_premiums
        ):
            assumptions.append(
                "Pixel pitch %.1fmm receives every fine-pitch premium tier." % item.pixel_pitch
            )
        if quote.breakdown["contingency"].sell > 0:
            assumptions.append(
                "Includes %.0f%% contingency for a new outdoor structure."
                % (rules.contingency_rate * 100)
            )
        if quote.breakdown["bond"].sell > 0:
            assumptions.append(
                "Includes %.0f%% performance bond on contract value." % (rules.bond_rate * 100)
            )
        for warning in quote.warnings:
            if warning not in assumptions:
                assumptions.append(warning)
        return assumptions

    def _price(self, item: LineItemInput, rules: RuleSet) -> Quote:
        raw = LineItemCalculator(rules).calculate(item)
        raw.update(PowerModel(rules).estimate(item, raw["screen_area"]))
        raw["detail"] = build_detail_breakdown(raw["sell"], rules)
        return QuoteAssembler(rules.pm_fee_share).assemble(raw)


def price_line_item(item: ItemLike, rules: Optional[RuleSet] = None) -> Quote:
    """Price a single line item. Raises InvalidMarginError for margin >= 100 or < 0."""
    return PricingEngine(rules).price_line_item(item)


__all__ = ["PricingEngine", "aggregate_quotes", "price_line_item"]
