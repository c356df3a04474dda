from __future__ import annotations

from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from ..enums import MaterialProperties


def _new_uuid() -> str:
    return str(uuid4())


class CatalogItem(BaseModel):
    """Catalog records are immutable once loaded."""
    id: int
    uuid: str = Field(default_factory=_new_uuid)

    class Config:
        frozen = True


class Unit(CatalogItem):
    name: str
    label: str = ""
    description: Optional[str] = None


class Property(CatalogItem):
    name: str
    description: Optional[str] = None
    weight_factor: float = 1.0


class MaterialType(CatalogItem):
    name: str
    description: str = ""
    accounting_type: int = 0
    fixed_quantity: bool = False
    instruction: Optional[str] = None
    material_unit: Optional[Unit] = None

    @property
    def unit_label(self) -> str:
        if self.material_unit is None:
            return ""
        return self.material_unit.label or self.material_unit.name


class Brand(CatalogItem):
    name: str
    description: Optional[str] = None
    # Mass per unit quantity; the server sends it as a decimal string
    weight: float = 0.0
    material_type_id: Optional[int] = None

    @field_validator("weight", mode="before")
    @classmethod
    def _coerce_weight(cls, value):
        if value in (None, ""):
            return 0.0
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0


class MaterialStandard(CatalogItem):
    """A SKU-like descriptor: one type, a set of brands, a set of properties."""
    name: str = ""
    description: str = ""
    old_standard_id: Optional[int] = None
    material_type: MaterialType
    material_brands: list[Brand] = []
    material_properties: list[Property] = []
    alternative_standards: Optional[list[MaterialStandard]] = None

    @property
    def brand_ids(self) -> list[int]:
        return sorted(brand.id for brand in self.material_brands)

    @property
    def brand_key(self) -> tuple[int, ...]:
        return tuple(self.brand_ids)

    @property
    def property_ids(self) -> list[int]:
        return sorted(prop.id for prop in self.material_properties)

    @property
    def is_joined(self) -> bool:
        return self.has_property(MaterialProperties.JOINED)

    @property
    def is_angular(self) -> bool:
        return self.has_property(MaterialProperties.ANGULAR)

    @property
    def brand_weight(self) -> float:
        """Sum of brand weights — mass per unit quantity of this standard."""
        return sum(brand.weight for brand in self.material_brands)

    def has_property(self, property_id: int) -> bool:
        return any(prop.id == property_id for prop in self.material_properties)

    def has_brand(self, brand_id: int) -> bool:
        return any(brand.id == brand_id for brand in self.material_brands)

    def total_weight(self, amount: float, quantity: float, decimals: int = 2) -> float:
        return round(amount * quantity * self.brand_weight, decimals)

    def display_name(self) -> str:
        name = f"{self.material_type.name} {', '.join(b.name for b in self.material_brands)}"
        if self.material_properties:
            name += f" ({', '.join(p.name for p in self.material_properties)})"
        return name


MaterialStandard.model_rebuild()
