"""
Line item calculator: one LineItemInput in, unrounded category costs out.

Each stage's raw cost is derived from the previous stage's raw cost, never
from a sell price:

    hardware   = area x hardware rate
    structural = hardware x structural multiplier
    labor      = (hardware + structural) x labor multiplier
    expense    = hardware x shipping rate

Margin is then inverted into a markup (1 / (1 - m)) and applied to each
category separately. Contingency and bond sit on top of the marked-up
subtotal and are not part of the internal cost baseline.

Output is a plain dict; QuoteAssembler owns rounding and packaging.
"""

import logging
import math

from ..errors import InvalidDimensionError, InvalidMarginError, QuoteCalculationError
from ..models import CATEGORIES, MARKUP_CATEGORIES, LineItemInput
from ..rules import RuleSet

logger = logging.getLogger(__name__)


def validate_dimension(field: str, value: float) -> float:
    """Return `value` if it is a finite number >= 0, else raise InvalidDimensionError."""
    if value is None or not math.isfinite(value) or value < 0:
        raise InvalidDimensionError(field, value)
    return float(value)


def markup_factor(margin_percent: float) -> float:
    """
    Convert a target margin (percent of sell price) into a cost multiplier.
    Raises InvalidMarginError outside [0, 100).
    """
    if margin_percent is None or not math.isfinite(margin_percent) or margin_percent < 0:
        raise InvalidMarginError(margin_percent)
    margin_fraction = margin_percent / 100.0
    if margin_fraction >= 1.0:
        raise InvalidMarginError(margin_percent)
    return 1.0 / (1.0 - margin_fraction)


class LineItemCalculator:
    """Prices a single line item against one RuleSet."""

    def __init__(self, rules: RuleSet):
        self.rules = rules

    def calculate(self, item: LineItemInput) -> dict:
        """
        Returns:
            {
                "label": str | None,
                "screen_area": float,
                "internal": {category: float},   # canonical CATEGORIES order
                "sell": {category: float},
                "margin_percent": float,
                "warnings": [str],
            }
        """
        rules = self.rules
        warnings = []

        width = self._normalized_dimension("width", item.width, warnings)
        height = self._normalized_dimension("height", item.height, warnings)

        margin_percent = item.target_margin_percent
        if margin_percent is None:
            margin_percent = rules.default_margin_percent
        try:
            markup = markup_factor(margin_percent)
        except InvalidMarginError:
            logger.warning("Rejected margin %r for line item %r", margin_percent, item.label)
            raise

        try:
            area = width * height
            raw_hardware = area * rules.base_hardware_rate(item)
            raw_structural = raw_hardware * rules.structural_multiplier(item)
            raw_labor = (raw_hardware + raw_structural) * rules.labor_multiplier(item)
            raw_expense = raw_hardware * rules.shipping_rate

            internal = {
                "hardware": raw_hardware,
                "structural": raw_structural,
                "labor": raw_labor,
                "expense": raw_expense,
                "contingency": 0.0,
                "bond": 0.0,
            }
            # Scale each category on its own, not the summed subtotal
            sell = {cat: internal[cat] * markup for cat in MARKUP_CATEGORIES}

            subtotal = sum(sell[cat] for cat in MARKUP_CATEGORIES)
            contingency = 0.0
            if rules.needs_contingency(item):
                contingency = subtotal * rules.contingency_rate
            sell["contingency"] = contingency

            bond = 0.0
            if item.bond_required:
                bond = (subtotal + contingency) * rules.bond_rate
            sell["bond"] = bond
        except ZeroDivisionError as e:
            raise InvalidMarginError(margin_percent) from e
        except ArithmeticError as e:
            raise QuoteCalculationError(
                f"Arithmetic error pricing line item: {e}", field="line_item", value=item.label
            ) from e

        for cat in CATEGORIES:
            if not (math.isfinite(internal[cat]) and math.isfinite(sell[cat])):
                raise QuoteCalculationError(
                    f"Non-finite {cat} cost for {width} x {height} ft display",
                    field=cat,
                    value=sell[cat],
                )

        logger.info(
            "Line item %s: %.1f sq ft, rate $%.0f/sq ft, margin %.1f%% -> cost %.2f sell %.2f",
            item.label or "(unnamed)", area, rules.base_hardware_rate(item), margin_percent,
            sum(internal.values()), sum(sell.values()),
        )

        return {
            "label": item.label,
            "screen_area": area,
            "internal": {cat: internal[cat] for cat in CATEGORIES},
            "sell": {cat: sell[cat] for cat in CATEGORIES},
            "margin_percent": float(margin_percent),
            "warnings": warnings,
        }

    def _normalized_dimension(self, field: str, value: float, warnings: list) -> float:
        try:
            return validate_dimension(field, value)
        except InvalidDimensionError as e:
            logger.warning("%s, using 0", e)
            warnings.append(f"{e}; treated as 0.")
            return 0.0
