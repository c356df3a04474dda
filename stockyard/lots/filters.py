"""
Lot filters used to pick candidates for a transformation.

All filters take a LotCollection and return a new LotCollection; an empty id
list means "no restriction" and returns the input unchanged.
"""

from typing import Iterable, Union

from ..enums import MaterialProperties, MaterialTypes
from .collection import LotCollection
from .lot import Lot

JOIN_TYPES = [MaterialTypes.PILE, MaterialTypes.I_BEAM, MaterialTypes.STRAIGHT_SEAM_PIPE]
CUT_TYPES = [MaterialTypes.PILE, MaterialTypes.ANGULAR_ELEMENT, MaterialTypes.SQUARE_PIPE]


def normalize_to_list(value: Union[int, Iterable[int]]) -> list[int]:
    if isinstance(value, int):
        return [value]
    return list(value)


def filter_by_material_type(lots: LotCollection, type_ids) -> LotCollection:
    ids = normalize_to_list(type_ids)
    if not ids:
        return lots
    return lots.filter_by(lambda lot: lot.material_standard.material_type.id in ids)


def filter_by_brand_ids(lots: LotCollection, brand_ids) -> LotCollection:
    """Lots whose standard carries at least one of brand_ids."""
    ids = normalize_to_list(brand_ids)
    if not ids:
        return lots
    return lots.filter_by(lambda lot: any(bid in ids for bid in lot.material_standard.brand_ids))


def filter_by_every_brand_id(lots: LotCollection, brand_ids) -> LotCollection:
    """Lots whose standard's brand set is exactly brand_ids."""
    ids = sorted(set(normalize_to_list(brand_ids)))
    if not ids:
        return lots
    return lots.filter_by(lambda lot: lot.material_standard.brand_ids == ids)


def filter_by_property_ids(lots: LotCollection, property_ids) -> LotCollection:
    """Lots whose standard carries at least one of property_ids."""
    ids = normalize_to_list(property_ids)
    if not ids:
        return lots
    return lots.filter_by(lambda lot: any(pid in ids for pid in lot.material_standard.property_ids))


def filter_with_properties(lots: LotCollection, property_ids, allow_empty_properties: bool = False) -> LotCollection:
    """
    Lots carrying every one of property_ids. With allow_empty_properties,
    lots whose standard has no properties at all pass too.
    """
    required = normalize_to_list(property_ids)

    def _matches(lot: Lot) -> bool:
        properties = lot.material_standard.property_ids
        if not properties or not required:
            return allow_empty_properties
        return all(pid in properties for pid in required)

    return lots.filter_by(_matches)


def has_same_brand_set(first: Lot, second: Lot) -> bool:
    return first.material_standard.brand_ids == second.material_standard.brand_ids


def find_compatible_lots(lots: LotCollection, target: Lot) -> LotCollection:
    """Lots other than target with the same material type and the same brand set."""
    type_id = target.material_standard.material_type.id
    return lots.filter_by(
        lambda lot: lot.uuid != target.uuid
        and lot.material_standard.material_type.id == type_id
        and has_same_brand_set(target, lot)
    )


def available_for_join(lots: LotCollection) -> LotCollection:
    joinable = filter_by_material_type(lots, JOIN_TYPES)
    return filter_with_properties(joinable, [MaterialProperties.JOINED], allow_empty_properties=True)


def available_for_cut(lots: LotCollection) -> LotCollection:
    return filter_by_material_type(lots, CUT_TYPES)
