"""
Quote Calculation Engine
Deterministic cost / sell-price model for LED display installations.
"""

__version__ = "1.0.0"

from .aggregator import aggregate_quotes
from .errors import (
    AggregationError,
    InvalidDimensionError,
    InvalidMarginError,
    QuoteCalculationError,
    QuoteEngineError,
    QuoteInvariantError,
)
from .models import AggregateQuote, CategoryCost, LineItemInput, Quote
from .parsing import parse_numeric_input
from .pricing_engine import PricingEngine, price_line_item
from .rules import RuleSet, get_active_rules, load_rules, reload_rules, set_active_rules

__all__ = [
    "AggregateQuote",
    "AggregationError",
    "CategoryCost",
    "InvalidDimensionError",
    "InvalidMarginError",
    "LineItemInput",
    "PricingEngine",
    "Quote",
    "QuoteCalculationError",
    "QuoteEngineError",
    "QuoteInvariantError",
    "RuleSet",
    "aggregate_quotes",
    "get_active_rules",
    "load_rules",
    "parse_numeric_input",
    "price_line_item",
    "reload_rules",
    "set_active_rules",
]
