"""
Adapters — server-shaped records into catalog and lot entities.

The inventory server speaks a JSON:API-like dialect: scalar fields live under
"attributes", nested records under "relationships". These functions flatten
that shape into the pydantic models. Plain dicts already in model shape go
straight through model_validate (see load_catalog).
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from .catalog.models import Brand, MaterialStandard, MaterialType, Property, Unit
from .catalog.standards import StandardCatalog
from .lots.collection import LotCollection
from .lots.lot import Lot

logger = logging.getLogger(__name__)

BUNDLED_CATALOG = Path(__file__).parent / "data" / "catalog.json"


def _attributes(record: dict) -> dict:
    return record.get("attributes") or {}


def _relationships(record: dict) -> dict:
    return record.get("relationships") or {}


def _with_uuid(record: dict, fields: dict) -> dict:
    # Servers only sometimes send a uuid; the models mint one otherwise
    if record.get("uuid"):
        fields["uuid"] = record["uuid"]
    return fields


# --- Catalog ---

def unit_from_api(record: dict) -> Unit:
    attrs = _attributes(record)
    return Unit(**_with_uuid(record, {
        "id": record["id"],
        "name": attrs.get("name") or "",
        "label": attrs.get("label") or "",
        "description": attrs.get("description"),
    }))


def property_from_api(record: dict) -> Property:
    attrs = _attributes(record)
    fields = {
        "id": record["id"],
        "name": attrs.get("name") or "",
        "description": attrs.get("description"),
    }
    if attrs.get("weight_factor") is not None:
        fields["weight_factor"] = attrs["weight_factor"]
    return Property(**fields)


def type_from_api(record: dict) -> MaterialType:
    attrs = _attributes(record)
    unit = _relationships(record).get("material_unit")
    return MaterialType(**_with_uuid(record, {
        "id": record["id"],
        "name": attrs.get("name") or "",
        "description": attrs.get("description") or "",
        "accounting_type": attrs.get("accounting_type") or 0,
        "fixed_quantity": bool(attrs.get("fixed_quantity")),
        "instruction": attrs.get("instruction"),
        "material_unit": unit_from_api(unit) if unit else None,
    }))


def brand_from_api(record: dict) -> Brand:
    attrs = _attributes(record)
    material_type = _relationships(record).get("material_type")
    return Brand(**_with_uuid(record, {
        "id": record["id"],
        "name": attrs.get("name") or "",
        "description": attrs.get("description"),
        "weight": attrs.get("weight"),
        "material_type_id": material_type["id"] if material_type else None,
    }))


def standard_from_api(record: dict) -> MaterialStandard:
    """One server standard record, with its type, brands, properties and alternatives."""
    attrs = _attributes(record)
    rels = _relationships(record)

    alternatives = rels.get("alternative_standards")
    return MaterialStandard(
        id=record["id"],
        name=attrs.get("name") or "",
        description=attrs.get("description") or "",
        old_standard_id=attrs.get("old_standard_id"),
        material_type=type_from_api(rels["material_type"]),
        material_brands=[brand_from_api(b) for b in rels.get("material_brands") or []],
        material_properties=[property_from_api(p) for p in rels.get("properties") or []],
        alternative_standards=[standard_from_api(a) for a in alternatives] if alternatives else None,
    )


def catalog_from_records(records: Iterable[dict]) -> StandardCatalog:
    """
    Build a catalog from either record shape.

    Records carrying "attributes" are treated as server records, anything
    else as a plain MaterialStandard dict.
    """
    standards = []
    for record in records:
        if "attributes" in record:
            standards.append(standard_from_api(record))
        else:
            standards.append(MaterialStandard.model_validate(record))
    return StandardCatalog(standards)


def load_catalog(path: Optional[Union[str, Path]] = None) -> StandardCatalog:
    """Read a catalog JSON file (a list of records, or {"data": [...]})."""
    path = Path(path) if path else BUNDLED_CATALOG
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)
    records = payload.get("data", []) if isinstance(payload, dict) else payload

    catalog = catalog_from_records(records)
    logger.info("Loaded %d material standards from %s", len(catalog), path)
    return catalog


# --- Inventory ---

def lot_from_api(record: dict, catalog: Optional[StandardCatalog] = None) -> Lot:
    """
    One server material record as a Lot.

    The lot's standard comes from relationships.new_standard. When only a
    standard id is present and a catalog is given, the catalog copy is used
    (InvariantViolation if the catalog lacks it). relationships.standard is
    the legacy standard and becomes old_material_standard_id.
    """
    attrs = _attributes(record)
    rels = _relationships(record)

    new_standard = rels.get("new_standard")
    if new_standard is None:
        raise ValueError(f"Material record {record.get('id')} has no new_standard")
    if "relationships" in new_standard:
        standard = standard_from_api(new_standard)
    elif catalog is not None:
        standard = catalog.require(new_standard["id"])
    else:
        raise ValueError(f"Material record {record.get('id')} carries only a standard id and no catalog was given")

    legacy = rels.get("standard")
    quantity = float(attrs.get("quantity") or 0)
    amount = float(attrs.get("amount") or 0)

    return Lot.new(
        standard,
        quantity=quantity,
        amount=amount,
        **_with_uuid(record, {
            "id": record.get("id") or 0,
            "locked": bool(attrs.get("locked")),
            "lock_reason": attrs.get("lock_reason"),
            "project_object_id": attrs.get("project_object_id"),
            "length_group_name": attrs.get("length_group_name") or "",
            "length_group_min": attrs.get("length_group_min") or 0.0,
            "length_group_max": attrs.get("length_group_max") or 0.0,
            "old_material_standard_id": legacy["id"] if legacy else None,
        }),
    )


def lots_from_api(records: Iterable[dict], catalog: Optional[StandardCatalog] = None) -> LotCollection:
    return LotCollection([lot_from_api(record, catalog) for record in records])
