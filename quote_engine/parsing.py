"""
Input-boundary coercion.

Form fields and AI-extracted parameters arrive as strings, numbers, or
nothing at all. Every numeric read goes through parse_numeric_input so
there is exactly one place that decides what "10 ft", "$1,200" or "abc"
turn into.
"""

import logging
import math
import re

logger = logging.getLogger(__name__)

# Trailing unit tokens accepted on numeric strings: 10ft, 10', 2.5mm, 30%
_UNIT_SUFFIX = re.compile(r"\s*(ft|feet|foot|'|mm|in|\"|%)\s*$", re.IGNORECASE)


def parse_numeric_input(value, fallback=0.0):
    """
    Coerce a loosely-typed value to a finite float.

    None, empty strings, booleans, unparseable text and NaN/inf all return
    `fallback`. Strings may carry a currency sign, thousands separators and
    one trailing unit ("12 ft", "2.5mm", "30%").
    """
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "").lstrip("$").strip()
        text = _UNIT_SUFFIX.sub("", text)
        if not text:
            return fallback
        try:
            number = float(text)
        except ValueError:
            logger.debug("Unparseable numeric input %r, using %r", value, fallback)
            return fallback
    if not math.isfinite(number):
        return fallback
    return number


def parse_flag(value, default=False):
    """Parse a yes/no style value. Unknown text returns `default`."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in ("yes", "y", "true", "1", "required"):
        return True
    if text in ("no", "n", "false", "0", "none", ""):
        return False
    return default


def normalize_choice(value, enum_cls, default, aliases=None):
    """
    Map a raw categorical value onto a member of `enum_cls`.

    Matching is case- and whitespace-insensitive on member values, then on
    `aliases` (lowercased key -> member). Anything else falls back to
    `default` silently; unknown categories never fail a quote.
    """
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return default
    key = str(value).strip().lower()
    for member in enum_cls:
        if member.value.lower() == key:
            return member
    if aliases and key in aliases:
        return aliases[key]
    logger.debug("Unknown %s value %r, using %s", enum_cls.__name__, value, default.value)
    return default
