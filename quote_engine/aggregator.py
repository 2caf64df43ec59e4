"""
Aggregator: fold several priced line items into one project total.

Numeric fields add; breakdowns merge key-wise (a category missing from one
item counts as 0). The aggregate margin is only a label: the caller's
override if given, else the margin every item shares, else None. A blended
margin is never computed.
"""

import logging
import math
from typing import Optional, Sequence

from .assembler import QuoteAssembler
from .errors import AggregationError, InvalidMarginError
from .models import AggregateQuote, Quote, ordered_categories

logger = logging.getLogger(__name__)


def _check_items(items) -> list:
    items = list(items or [])
    if not items:
        raise AggregationError("Cannot aggregate an empty list of line items", field="items")
    for index, item in enumerate(items):
        if isinstance(item, BaseException):
            raise AggregationError(
                f"Line item {index} failed and cannot be aggregated: {item}",
                field=getattr(item, "field", None) or "items",
                value=index,
            ) from item
        if not isinstance(item, Quote):
            raise AggregationError(
                f"Line item {index} is not a priced quote (got {type(item).__name__})",
                field="items",
                value=index,
            )
    return items


def aggregate_quotes(items: Sequence[Quote], margin_override: Optional[float] = None,
                     assembler: Optional[QuoteAssembler] = None) -> AggregateQuote:
    """
    Sum a non-empty sequence of Quotes into an AggregateQuote.

    Raises AggregationError if the sequence is empty or contains anything
    other than a Quote (e.g. the exception from a failed item), and
    InvalidMarginError if margin_override is outside [0, 100).
    """
    items = _check_items(items)
    if margin_override is not None and (
        not math.isfinite(margin_override) or not 0 <= margin_override < 100
    ):
        raise InvalidMarginError(margin_override, field="margin_override")

    keys = ordered_categories(k for q in items for k in q.breakdown)
    breakdown = {
        cat: {
            "internal": sum(q.breakdown[cat].internal for q in items if cat in q.breakdown),
            "sell": sum(q.breakdown[cat].sell for q in items if cat in q.breakdown),
        }
        for cat in keys
    }

    detail = {}
    for q in items:
        for label, value in q.detail_breakdown.items():
            detail[label] = detail.get(label, 0.0) + value

    margins = {q.margin_percent for q in items}
    if margin_override is not None:
        margin = margin_override
    elif len(margins) == 1:
        margin = margins.pop()
    else:
        margin = None
        logger.info("Aggregating %d items at mixed margins %s; margin left unset",
                    len(items), sorted(margins))

    warnings = []
    for q in items:
        prefix = f"{q.label}: " if q.label else ""
        warnings.extend(prefix + w for w in q.warnings)

    totals = {
        "item_count": len(items),
        "screen_area": sum(q.screen_area for q in items),
        "breakdown": breakdown,
        "total_internal_cost": sum(q.total_internal_cost for q in items),
        "sell_price": sum(q.sell_price for q in items),
        "gross_profit": sum(q.gross_profit for q in items),
        "pm_fee": sum(q.pm_fee for q in items),
        "margin_percent": margin,
        "power_watts": sum(q.power_watts for q in items),
        "power_amps": sum(q.power_amps for q in items),
        "detail_breakdown": detail,
        "warnings": warnings,
    }

    aggregate = (assembler or QuoteAssembler()).assemble_aggregate(totals)
    logger.info(
        "Aggregated %d line items: %.1f sq ft, cost %.0f, sell %.0f",
        aggregate.item_count, aggregate.screen_area,
        aggregate.total_internal_cost, aggregate.sell_price,
    )
    return aggregate
