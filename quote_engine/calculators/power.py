"""
Electrical load estimate for a display.

watts = area x watts-per-sq-ft for the environment; amps = watts at a fixed
120 V reference. This is a sizing hint for the proposal, not an electrical
design: no phase, power factor, or diversity is modeled.
"""

from ..assembler import round_half_up
from ..errors import QuoteCalculationError
from ..models import LineItemInput
from ..rules import RuleSet


class PowerModel:

    def __init__(self, rules: RuleSet):
        self.rules = rules

    def estimate(self, item: LineItemInput, screen_area: float) -> dict:
        """
        `screen_area` is the already-normalized area from the line item
        calculator, so a rejected dimension never leaks back in here.
        """
        try:
            watts = screen_area * self.rules.watts_per_sqft_for(item)
            amps = round_half_up(watts / self.rules.reference_voltage)
        except ArithmeticError as e:
            raise QuoteCalculationError(
                f"Arithmetic error estimating power: {e}", field="power_amps",
                value=self.rules.reference_voltage,
            ) from e
        return {"power_watts": watts, "power_amps": amps}

    def assumption(self) -> str:
        loads = ", ".join(
            "%.0f W/sq ft %s" % (watts, env.lower())
            for env, watts in self.rules.watts_per_sqft.items()
        )
        return (
            "Power estimate uses %s at a %.0f V reference; "
            "final electrical design by others." % (loads, self.rules.reference_voltage)
        )
