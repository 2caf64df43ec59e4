"""
Pricing rules: the rate card every calculation reads from.

A RuleSet is an immutable value: calculators receive one explicitly and
never look anything up globally. The process-wide "active" RuleSet is a
single reference that reload_rules() replaces wholesale, so a calculation
that has already captured its RuleSet is unaffected by a reload.

Surcharges are additive and only depend on the flags present on the input;
an unknown or missing categorical value simply contributes nothing.
"""

import json
import logging
import threading
from types import MappingProxyType
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field, NonNegativeFloat, field_serializer, field_validator

from .config import settings
from .models import Access, Environment, LineItemInput, Shape, StructureStatus

logger = logging.getLogger(__name__)


# Expert-view distribution of category sells into proposal line items.
# (label, source category, share of that category's sell price)
DEFAULT_DETAIL_ALLOCATION = (
    ("1. Hardware", "hardware", 0.95),
    ("2. Structural Materials", "structural", 0.65),
    ("3. Structural Labor", "structural", 0.35),
    ("4. LED Installation", "labor", 0.45),
    ("5. Electrical Materials", "labor", 0.05),
    ("6. Electrical Labor", "labor", 0.10),
    ("7. CMS Equipment", "hardware", 0.05),
    ("8. CMS Installation", "labor", 0.05),
    ("9. CMS Commissioning", "labor", 0.05),
    ("10. Project Management", "expense", 0.20),
    ("11. General Conditions", "expense", 0.10),
    ("12. Travel & Expenses", "expense", 0.40),
    ("13. Submittals", "expense", 0.05),
    ("14. Engineering", "expense", 0.15),
    ("15. Permits", "expense", 0.10),
    ("16. Final Commissioning", "labor", 0.30),
    ("17. Bond", "bond", 1.00),
    ("18. Contingency", "contingency", 1.00),
)


class RuleSet(BaseModel):
    """Rate tables and constants. Rates are $/sq ft; multipliers are fractions."""

    # --- Hardware ($/sq ft) ---
    default_hardware_rate: NonNegativeFloat = 800.0
    class_hardware_rates: Dict[str, NonNegativeFloat] = {"Ribbon": 1200.0}
    # (max pitch mm, premium). Each tier is checked independently, so a
    # 2.5mm or finer product pays both premiums.
    pitch_premiums: Tuple[Tuple[NonNegativeFloat, NonNegativeFloat], ...] = (
        (4.0, 400.0), (2.5, 800.0),
    )
    outdoor_hardware_surcharge: NonNegativeFloat = 200.0

    # --- Structural (fraction of hardware) ---
    structural_base: NonNegativeFloat = 0.20
    structural_outdoor: NonNegativeFloat = 0.05          # wind load
    structural_new_structure: NonNegativeFloat = 0.15
    mounting_surcharges: Dict[str, NonNegativeFloat] = {"Rigging": 0.10}
    structural_curved: NonNegativeFloat = 0.05

    # --- Labor (fraction of hardware + structural) ---
    labor_base: NonNegativeFloat = 0.15
    jurisdiction_surcharges: Dict[str, NonNegativeFloat] = {"Union": 0.15, "Prevailing": 0.10}
    labor_rear_access: NonNegativeFloat = 0.02

    # --- Fixed rates ---
    shipping_rate: NonNegativeFloat = 0.05
    bond_rate: NonNegativeFloat = 0.01
    contingency_rate: NonNegativeFloat = 0.05
    default_margin_percent: float = Field(30.0, ge=0, lt=100)
    pm_fee_share: NonNegativeFloat = 0.20               # share of expense sell shown as PM fee

    # --- Power ---
    watts_per_sqft: Dict[str, NonNegativeFloat] = {"Indoor": 35.0, "Outdoor": 65.0}
    reference_voltage: float = Field(120.0, gt=0, allow_inf_nan=False)

    detail_allocation: Tuple[Tuple[str, str, NonNegativeFloat], ...] = DEFAULT_DETAIL_ALLOCATION

    class Config:
        frozen = True
        validate_default = True

    # frozen only blocks reassignment; the lookup tables are read-only views
    # so a shared RuleSet cannot be edited in place
    @field_validator("class_hardware_rates", "mounting_surcharges",
                     "jurisdiction_surcharges", "watts_per_sqft")
    @classmethod
    def _read_only_table(cls, v):
        return MappingProxyType(dict(v))

    @field_serializer("class_hardware_rates", "mounting_surcharges",
                      "jurisdiction_surcharges", "watts_per_sqft")
    def _dump_table(self, table):
        return dict(table)

    def base_hardware_rate(self, item: LineItemInput) -> float:
        rate = self.class_hardware_rates.get(item.product_class.value, self.default_hardware_rate)
        if item.pixel_pitch is not None:
            for max_pitch, premium in self.pitch_premiums:
                if item.pixel_pitch <= max_pitch:
                    rate += premium
        if item.environment == Environment.OUTDOOR:
            rate += self.outdoor_hardware_surcharge
        return rate

    def structural_multiplier(self, item: LineItemInput) -> float:
        rate = self.structural_base
        if item.environment == Environment.OUTDOOR:
            rate += self.structural_outdoor
        if item.structure_status == StructureStatus.NEW:
            rate += self.structural_new_structure
        rate += self.mounting_surcharges.get(item.mounting_type.value, 0.0)
        if item.shape == Shape.CURVED:
            rate += self.structural_curved
        return rate

    def labor_multiplier(self, item: LineItemInput) -> float:
        rate = self.labor_base
        rate += self.jurisdiction_surcharges.get(item.labor_jurisdiction.value, 0.0)
        if item.access == Access.REAR:
            rate += self.labor_rear_access
        return rate

    def needs_contingency(self, item: LineItemInput) -> bool:
        return (item.structure_status == StructureStatus.NEW
                and item.environment == Environment.OUTDOOR)

    def watts_per_sqft_for(self, item: LineItemInput) -> float:
        return self.watts_per_sqft.get(
            item.environment.value, self.watts_per_sqft.get(Environment.INDOOR.value, 0.0)
        )


def load_rules(path: str, base: Optional[RuleSet] = None) -> RuleSet:
    """
    Read a JSON rate card and merge it over `base` (or the built-in rules).
    Only the keys present in the file are replaced; table keys replace the
    whole table.
    """
    base = base or RuleSet()
    with open(path) as f:
        overrides = json.load(f)
    if not isinstance(overrides, dict):
        raise ValueError(f"Rate card {path} must contain a JSON object")
    rules = RuleSet.model_validate({**base.model_dump(), **overrides})
    logger.info("Loaded %d rule overrides from %s", len(overrides), path)
    return rules


def rules_from_settings() -> RuleSet:
    """Built-in rules with the configured defaults, plus RULES_FILE if set."""
    base = RuleSet(
        default_margin_percent=settings.DEFAULT_MARGIN_PERCENT,
        reference_voltage=settings.REFERENCE_VOLTAGE,
    )
    if settings.RULES_FILE:
        return load_rules(settings.RULES_FILE, base)
    return base


# --- Active rules (process-wide, swapped atomically) ---

_active_lock = threading.Lock()
_active_rules: Optional[RuleSet] = None


def get_active_rules() -> RuleSet:
    global _active_rules
    with _active_lock:
        if _active_rules is None:
            _active_rules = rules_from_settings()
        return _active_rules


def set_active_rules(rules: RuleSet) -> RuleSet:
    """Replace the active RuleSet. Returns the previous one."""
    global _active_rules
    with _active_lock:
        previous = _active_rules
        _active_rules = rules
    return previous


def reload_rules(path: str = None) -> RuleSet:
    """Rebuild the active rules from settings (or `path`) and swap them in."""
    rules = load_rules(path, rules_from_settings()) if path else rules_from_settings()
    set_active_rules(rules)
    logger.info("Active pricing rules reloaded")
    return rules
