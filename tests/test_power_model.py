"""
Power estimate tests.

Tests:
1. Indoor 35 W/sq ft, outdoor 65 W/sq ft
2. Amps at the 120 V reference, rounded half up
3. Zero / normalized area draws nothing
4. Power fields on the priced quote
5. Arithmetic failures surface as typed errors; rounding at the half
"""

import pytest

from quote_engine import price_line_item
from quote_engine.assembler import round_half_up
from quote_engine.calculators import PowerModel
from quote_engine.errors import QuoteCalculationError, QuoteEngineError
from quote_engine.models import LineItemInput
from quote_engine.rules import RuleSet


def test_watts_by_environment(default_rules):
    model = PowerModel(default_rules)
    indoor = model.estimate(LineItemInput(environment="Indoor"), 50)
    outdoor = model.estimate(LineItemInput(environment="Outdoor"), 50)
    assert indoor["power_watts"] == 1750
    assert outdoor["power_watts"] == 3250


@pytest.mark.parametrize("area,environment,amps", [
    (50, "Indoor", 15),     # 1750 / 120 = 14.58
    (50, "Outdoor", 27),    # 3250 / 120 = 27.08
    (240, "Indoor", 70),    # 8400 / 120
    (1500, "Outdoor", 813),  # 97500 / 120 = 812.5 -> half up
])
def test_amps_at_reference_voltage(default_rules, area, environment, amps):
    result = PowerModel(default_rules).estimate(LineItemInput(environment=environment), area)
    assert result["power_amps"] == amps


def test_zero_area_draws_nothing(default_rules):
    result = PowerModel(default_rules).estimate(LineItemInput(), 0)
    assert result == {"power_watts": 0, "power_amps": 0}


def test_reference_voltage_is_configurable():
    rules = RuleSet(reference_voltage=240)
    result = PowerModel(rules).estimate(LineItemInput(environment="Indoor"), 240)
    assert result["power_amps"] == 35


def test_quote_carries_power(engine, indoor_item):
    quote = engine.price_line_item(indoor_item)
    assert quote.power_watts == 1750
    assert quote.power_amps == 15


def test_negative_dimension_draws_no_power(engine):
    quote = engine.price_line_item(LineItemInput(width=-20, height=10, environment="Outdoor"))
    assert quote.power_watts == 0
    assert quote.power_amps == 0


def test_assumption_names_reference_voltage(default_rules):
    text = PowerModel(default_rules).assumption()
    assert "120 V" in text
    assert "35 W/sq ft indoor" in text


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(0.49) == 0
    assert round_half_up(-2.5) == -3


def test_round_half_up_just_below_half():
    assert round_half_up(0.49999999999999994) == 0
    assert round_half_up(-0.49999999999999994) == 0
    assert round_half_up(2.4999999999999996) == 2
    assert round_half_up(1e16 + 2) == 1e16 + 2


def test_zero_reference_voltage_is_a_typed_error():
    # RuleSet validation rejects 0 V; model_copy skips it like a hand-built card would
    rules = RuleSet().model_copy(update={"reference_voltage": 0})
    with pytest.raises(QuoteCalculationError) as exc:
        PowerModel(rules).estimate(LineItemInput(), 50)
    assert exc.value.field == "power_amps"
    with pytest.raises(QuoteEngineError):
        price_line_item(LineItemInput(width=10, height=5), rules=rules)
