"""
Shared test fixtures: built-in rules, a pricing engine bound to them, and
the reference line items used across the suite.
"""

import os

import pytest

# Keep a developer's .env / rate card out of the test run
os.environ["RULES_FILE"] = ""
os.environ["DEFAULT_MARGIN_PERCENT"] = "30"
os.environ["REFERENCE_VOLTAGE"] = "120"

from quote_engine import rules as rules_module
from quote_engine.models import LineItemInput
from quote_engine.pricing_engine import PricingEngine
from quote_engine.rules import RuleSet


@pytest.fixture
def default_rules():
    """Built-in rate card: 800/sq ft standard, 30% default margin."""
    return RuleSet()


@pytest.fixture
def engine(default_rules):
    """PricingEngine pinned to the built-in rules."""
    return PricingEngine(default_rules)


@pytest.fixture(autouse=True)
def reset_active_rules():
    """Tests that swap the process-wide rules must not leak into each other."""
    rules_module.set_active_rules(None)
    yield
    rules_module.set_active_rules(None)


@pytest.fixture
def indoor_item():
    """10 x 5 ft standard indoor display on existing structure, 30% margin."""
    return LineItemInput(
        label="Concourse display",
        width=10,
        height=5,
        product_class="Standard",
        environment="Indoor",
        structure_status="Existing",
        target_margin_percent=30,
    )


@pytest.fixture
def outdoor_new_item():
    """Same size, outdoor on new steel with a bond: contingency and bond both apply."""
    return LineItemInput(
        label="Marquee",
        width=10,
        height=5,
        product_class="Standard",
        environment="Outdoor",
        structure_status="New",
        bond_required=True,
        target_margin_percent=30,
    )
