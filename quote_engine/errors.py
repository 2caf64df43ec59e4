"""
Error taxonomy for the quote engine.

Every error carries the offending field and value so the form / chat layer
can point the user at the input that caused it.
"""


class QuoteEngineError(Exception):
    """Base class for all quote engine failures."""

    def __init__(self, message: str, field: str = None, value=None):
        super().__init__(message)
        self.field = field
        self.value = value


class InvalidMarginError(QuoteEngineError):
    """Margin outside [0, 100). The markup 1 / (1 - m) is undefined at 100%."""

    def __init__(self, value, field: str = "target_margin_percent"):
        super().__init__(
            f"Margin must be >= 0 and < 100 percent (got {value!r})",
            field=field,
            value=value,
        )


class InvalidDimensionError(QuoteEngineError):
    """Negative or non-finite width/height. Normalized to 0 by the calculator."""

    def __init__(self, field: str, value):
        super().__init__(
            f"{field} must be a finite number >= 0 (got {value!r})",
            field=field,
            value=value,
        )


class QuoteCalculationError(QuoteEngineError):
    """Arithmetic overflow or a non-finite intermediate result."""


class AggregationError(QuoteEngineError):
    """Aggregate requested over an empty or partially failed set of items."""


class QuoteInvariantError(QuoteEngineError):
    """An assembled quote failed its post-rounding consistency checks."""
