"""
Standard catalog — read-only reference data (units, properties, brands,
types) composed into material standards, plus the catalog lookups the
join and angle engines rely on.
"""

from .models import Brand, MaterialStandard, MaterialType, Property, Unit
from .standards import StandardCatalog

__all__ = [
    "Brand",
    "MaterialStandard",
    "MaterialType",
    "Property",
    "StandardCatalog",
    "Unit",
]
