"""
Deterministic calculation stages.

Pure Python math, no I/O. Each calculator takes its RuleSet at construction
and returns plain dicts; rounding and packaging live in the assembler.
"""

from .detail import build_detail_breakdown
from .line_item import LineItemCalculator, markup_factor, validate_dimension
from .power import PowerModel

__all__ = [
    "LineItemCalculator",
    "PowerModel",
    "build_detail_breakdown",
    "markup_factor",
    "validate_dimension",
]
