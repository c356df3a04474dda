"""
LotCollection — an ordered set of lots with provenance and aggregate queries.

The collection owns slots, not lots: the same Lot object may sit in several
collections during a transformation session. "Mutating" a lot means
replace_by_uuid() with a clone.
"""

from typing import Optional

from ..base_collection import Collection
from ..catalog.models import MaterialStandard
from ..config import settings
from .lot import Lot


class LotCollection(Collection[Lot]):

    def get_locked(self) -> "LotCollection":
        return self.filter_by(lambda lot: lot.locked)

    def get_unlocked(self) -> "LotCollection":
        return self.filter_by(lambda lot: not lot.locked)

    def filter_by_project_object(self, project_object_id: int) -> "LotCollection":
        return self.filter_by(lambda lot: lot.project_object_id == project_object_id)

    def filter_by_material_standard(self, standard_id: int) -> "LotCollection":
        return self.filter_where("material_standard.id", standard_id)

    # --- Provenance ---

    def filter_all_by_cut_from(self, uuid: str) -> "LotCollection":
        return self.filter_by(lambda lot: lot.cut_from == uuid)

    def filter_cut_from_lot(self, lot: Lot) -> "LotCollection":
        return self.filter_all_by_cut_from(lot.uuid)

    def filter_by_operation(self, operation_uuid: str) -> "LotCollection":
        return self.filter_by(lambda lot: lot.cut_operation_uuid == operation_uuid)

    def filter_joined_to(self, result_uuid: str) -> "LotCollection":
        return self.filter_by(lambda lot: lot.join_to == result_uuid)

    def filter_not_joined(self) -> "LotCollection":
        return self.filter_by(lambda lot: lot.join_to is None)

    def filter_changed(self) -> "LotCollection":
        return self.filter_by(lambda lot: lot.is_changed)

    def operation_index(self) -> dict[str, list[str]]:
        """cut_operation_uuid -> uuids of the lots in that operation group."""
        index: dict[str, list[str]] = {}
        for lot in self.items:
            if lot.cut_operation_uuid:
                index.setdefault(lot.cut_operation_uuid, []).append(lot.uuid)
        return index

    # --- Aggregates ---

    def all_have_positive_quantity_and_amount(self) -> bool:
        return all(lot.quantity > 0 and lot.amount > 0 for lot in self.items)

    def total_weight(self) -> float:
        return round(sum(lot.total_weight for lot in self.items), settings.WEIGHT_DECIMALS)

    def total_amount(self) -> float:
        return sum(lot.amount for lot in self.items)

    def total_amount_quantity(self) -> float:
        return sum(lot.volume for lot in self.items)

    def grouped_amount_quantity_by_unit(self) -> list[dict]:
        groups: dict[str, float] = {}
        for lot in self.items:
            unit = lot.material_standard.material_type.unit_label or "—"
            groups[unit] = groups.get(unit, 0.0) + lot.volume
        return [{"unit": unit, "total": total} for unit, total in groups.items()]

    def grouped_amount_quantity_by_type(self) -> list[dict]:
        groups: dict[str, dict] = {}
        for lot in self.items:
            material_type = lot.material_standard.material_type
            entry = groups.setdefault(
                material_type.name or "—",
                {"unit": material_type.unit_label or "—", "total": 0.0},
            )
            entry["total"] += lot.volume
        return [
            {"type": type_name, "unit": entry["unit"], "total": entry["total"]}
            for type_name, entry in groups.items()
        ]

    # --- Construction ---

    def create_and_add_from_standard(self, standard: MaterialStandard) -> Lot:
        lot = Lot.create_from_standard(standard)
        self.add(lot)
        return lot

    def find_by_uuid_in(self, uuid: str, *others: "LotCollection") -> Optional[Lot]:
        """Look up uuid here first, then in each of others in order."""
        for collection in (self, *others):
            lot = collection.find_by_uuid(uuid)
            if lot is not None:
                return lot
        return None

    def clone(self) -> "LotCollection":
        """Independent collection holding the same lots (lots are immutable)."""
        return self.copy()
