"""
Value objects for the quote engine.

LineItemInput is what the form / chat layer hands in; Quote and
AggregateQuote are what comes back out. All of them are frozen and built
fresh per calculation.
"""

import enum
from typing import Dict, List, Optional

from pydantic import BaseModel, field_validator

from .parsing import normalize_choice, parse_flag, parse_numeric_input


# --- Enums ---

class ProductClass(str, enum.Enum):
    STANDARD = "Standard"
    RIBBON = "Ribbon"
    SCOREBOARD = "Scoreboard"


class Environment(str, enum.Enum):
    INDOOR = "Indoor"
    OUTDOOR = "Outdoor"


class StructureStatus(str, enum.Enum):
    EXISTING = "Existing"
    NEW = "New"


class MountingType(str, enum.Enum):
    STANDARD = "Standard"
    RIGGING = "Rigging"
    WALL = "Wall"
    GROUND = "Ground"


class Shape(str, enum.Enum):
    FLAT = "Flat"
    CURVED = "Curved"


class LaborJurisdiction(str, enum.Enum):
    STANDARD = "Standard"
    UNION = "Union"
    PREVAILING = "Prevailing"


class Access(str, enum.Enum):
    STANDARD = "Standard"
    FRONT = "Front"
    REAR = "Rear"


# Canonical breakdown order. Output dicts are built in this order.
CATEGORIES = ["hardware", "structural", "labor", "expense", "contingency", "bond"]
MARKUP_CATEGORIES = ["hardware", "structural", "labor", "expense"]


def ordered_categories(keys) -> list:
    """Canonical categories first, then any extra keys in first-seen order."""
    keys = list(dict.fromkeys(keys))
    ordered = [c for c in CATEGORIES if c in keys]
    ordered.extend(k for k in keys if k not in CATEGORIES)
    return ordered


_PRODUCT_ALIASES = {
    "ribbon board": ProductClass.RIBBON,
    "led display": ProductClass.STANDARD,
}
_STRUCTURE_ALIASES = {
    "newsteel": StructureStatus.NEW,
    "new steel": StructureStatus.NEW,
}
_JURISDICTION_ALIASES = {
    "prevailing wage": LaborJurisdiction.PREVAILING,
}

# Loose field names accepted by LineItemInput.from_fields, first match wins.
_FIELD_KEYS = {
    "label": ("label", "name", "screenName", "description"),
    "width": ("width", "widthFt", "width_ft"),
    "height": ("height", "heightFt", "height_ft"),
    "product_class": ("product_class", "productClass", "productType", "productCategory"),
    "pixel_pitch": ("pixel_pitch", "pixelPitch"),
    "environment": ("environment",),
    "structure_status": ("structure_status", "structureStatus", "structureCondition", "steelType"),
    "mounting_type": ("mounting_type", "mountingType"),
    "shape": ("shape",),
    "labor_jurisdiction": ("labor_jurisdiction", "laborJurisdiction", "laborType"),
    "access": ("access",),
    "bond_required": ("bond_required", "bondRequired"),
    "target_margin_percent": ("target_margin_percent", "targetMarginPercent", "targetMargin",
                              "marginPercent"),
}


class LineItemInput(BaseModel):
    """One priced unit, typically one display screen."""

    label: Optional[str] = None
    width: float = 0.0
    height: float = 0.0
    product_class: ProductClass = ProductClass.STANDARD
    pixel_pitch: Optional[float] = None
    environment: Environment = Environment.INDOOR
    structure_status: StructureStatus = StructureStatus.EXISTING
    mounting_type: MountingType = MountingType.STANDARD
    shape: Shape = Shape.FLAT
    labor_jurisdiction: LaborJurisdiction = LaborJurisdiction.STANDARD
    access: Access = Access.STANDARD
    bond_required: bool = False
    target_margin_percent: Optional[float] = None

    class Config:
        frozen = True

    # Numbers pass through untouched (the calculator owns negative / NaN
    # handling); anything else goes through the one coercion path.
    @field_validator("width", "height", mode="before")
    @classmethod
    def _coerce_dimension(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return v
        return parse_numeric_input(v, 0.0)

    @field_validator("target_margin_percent", mode="before")
    @classmethod
    def _coerce_margin(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return v
        return parse_numeric_input(v, None)

    @field_validator("pixel_pitch", mode="before")
    @classmethod
    def _coerce_pitch(cls, v):
        pitch = parse_numeric_input(v, None)
        if pitch is None or pitch <= 0:
            return None
        return pitch

    @field_validator("bond_required", mode="before")
    @classmethod
    def _coerce_bond(cls, v):
        return parse_flag(v)

    @field_validator("product_class", mode="before")
    @classmethod
    def _coerce_product_class(cls, v):
        return normalize_choice(v, ProductClass, ProductClass.STANDARD, _PRODUCT_ALIASES)

    @field_validator("environment", mode="before")
    @classmethod
    def _coerce_environment(cls, v):
        return normalize_choice(v, Environment, Environment.INDOOR)

    @field_validator("structure_status", mode="before")
    @classmethod
    def _coerce_structure(cls, v):
        return normalize_choice(v, StructureStatus, StructureStatus.EXISTING, _STRUCTURE_ALIASES)

    @field_validator("mounting_type", mode="before")
    @classmethod
    def _coerce_mounting(cls, v):
        return normalize_choice(v, MountingType, MountingType.STANDARD)

    @field_validator("shape", mode="before")
    @classmethod
    def _coerce_shape(cls, v):
        return normalize_choice(v, Shape, Shape.FLAT)

    @field_validator("labor_jurisdiction", mode="before")
    @classmethod
    def _coerce_jurisdiction(cls, v):
        return normalize_choice(v, LaborJurisdiction, LaborJurisdiction.STANDARD,
                                _JURISDICTION_ALIASES)

    @field_validator("access", mode="before")
    @classmethod
    def _coerce_access(cls, v):
        return normalize_choice(v, Access, Access.STANDARD)

    @classmethod
    def from_fields(cls, fields: dict) -> "LineItemInput":
        """
        Build an input from a loose field dict (form answers or AI-extracted
        parameters). Accepts camelCase keys and legacy aliases such as
        steelType / laborType. Unknown keys are ignored.
        """
        values = {}
        for name, keys in _FIELD_KEYS.items():
            for key in keys:
                if key in fields and fields[key] is not None:
                    values[name] = fields[key]
                    break
        if "label" in values:
            values["label"] = str(values["label"])
        return cls(**values)

    @property
    def screen_area(self) -> float:
        return self.width * self.height


class CategoryCost(BaseModel):
    internal: float = 0.0
    sell: float = 0.0

    class Config:
        frozen = True


class Quote(BaseModel):
    """Priced result for one line item. Currency fields are whole units."""

    label: Optional[str] = None
    screen_area: float
    breakdown: Dict[str, CategoryCost]
    total_internal_cost: float
    sell_price: float
    gross_profit: float
    pm_fee: float
    margin_percent: float
    power_watts: float
    power_amps: int
    detail_breakdown: Dict[str, float] = {}
    warnings: List[str] = []

    class Config:
        frozen = True


class AggregateQuote(BaseModel):
    """Element-wise sum of several Quotes."""

    item_count: int
    screen_area: float
    breakdown: Dict[str, CategoryCost]
    total_internal_cost: float
    sell_price: float
    gross_profit: float
    pm_fee: float
    # None when the items were priced at different margins and no override was given
    margin_percent: Optional[float] = None
    power_watts: float
    power_amps: int
    detail_breakdown: Dict[str, float] = {}
    warnings: List[str] = []

    class Config:
        frozen = True
