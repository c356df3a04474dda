"""
Lot — a quantity/count of one material standard held in inventory.

A lot represents `amount` physical units, each of size `quantity` (metres for
fixed-length stock, a continuous measure for sheet/bar stock). Lots are
immutable: every change produces a new Lot through clone_with_new_params(),
and the owning collection swaps it in by uuid.

Provenance is kept as flat back-references:
  cut_from            uuid of the lot this piece was cut from
  cut_operation_uuid  groups every piece produced by one (possibly chained) cut
  join_to             uuid of the result lot this piece was merged into
"""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from ..catalog.models import MaterialStandard
from ..config import settings


def _new_uuid() -> str:
    return str(uuid4())


class Lot(BaseModel):
    id: int = 0
    uuid: str = Field(default_factory=_new_uuid)

    quantity: float = Field(default=0.0, ge=0)
    amount: float = Field(default=0.0, ge=0)
    initial_quantity: float = 0.0
    initial_amount: float = 0.0

    locked: bool = False
    lock_reason: Optional[str] = None
    project_object_id: Optional[int] = None
    length_group_name: str = ""
    length_group_min: float = 0.0
    length_group_max: float = 0.0
    old_material_standard_id: Optional[int] = None

    material_standard: MaterialStandard

    cut_from: Optional[str] = None
    cut_operation_uuid: Optional[str] = None
    join_to: Optional[str] = None

    class Config:
        frozen = True

    # --- Construction ---

    @classmethod
    def new(cls, standard: MaterialStandard, quantity: float, amount: float, **fields) -> Lot:
        """Fresh lot whose initial snapshot equals its current values."""
        return cls(
            material_standard=standard,
            quantity=quantity,
            amount=amount,
            initial_quantity=quantity,
            initial_amount=amount,
            **fields,
        )

    @classmethod
    def create_from_standard(cls, standard: MaterialStandard) -> Lot:
        """Zero quantity/amount placeholder for a standard (used for previews)."""
        return cls.new(
            standard,
            quantity=0.0,
            amount=0.0,
            old_material_standard_id=standard.old_standard_id,
        )

    # --- Derived values ---

    @property
    def is_fixed_quantity(self) -> bool:
        return self.material_standard.material_type.fixed_quantity is True

    @property
    def total_weight(self) -> float:
        return self.material_standard.total_weight(
            self.amount, self.quantity, settings.WEIGHT_DECIMALS
        )

    @property
    def initial_total_weight(self) -> float:
        return self.material_standard.total_weight(
            self.initial_amount, self.initial_quantity, settings.WEIGHT_DECIMALS
        )

    @property
    def volume(self) -> float:
        """amount × quantity — total length (or measure) held by the lot."""
        return self.amount * self.quantity

    @property
    def is_changed(self) -> bool:
        return self.quantity != self.initial_quantity or self.amount != self.initial_amount

    def is_quantity_changed(self) -> bool:
        return self.quantity != self.initial_quantity

    def is_amount_changed(self) -> bool:
        return self.amount != self.initial_amount

    def is_total_weight_changed(self) -> bool:
        return self.total_weight != self.initial_total_weight

    @property
    def is_cut_piece(self) -> bool:
        return bool(self.cut_from and self.cut_operation_uuid)

    # --- Display ---

    def display_name(self) -> str:
        return self.material_standard.display_name()

    def display_quantity(self) -> str:
        label = self.material_standard.material_type.unit_label
        return f"{round(self.quantity, 2):g} {label}".strip()

    def display_amount(self) -> str:
        return f"{round(self.amount, 2):g} pcs"

    def display_total_weight(self) -> str:
        return f"{self.total_weight:.2f} t"

    # --- Clones ---

    def clone_with_new_params(
        self,
        quantity: float,
        amount: float,
        cut_operation_uuid: Optional[str] = None,
        keep_original: bool = False,
    ) -> Lot:
        """
        The single mutation primitive.

        keep_original=True keeps uuid, initial snapshot and provenance — the
        lot that stays in the source collection, only smaller.
        keep_original=False mints a fresh piece: new uuid, initial snapshot
        equal to the new values, provenance pointing at this lot. If this lot
        is itself a cut piece its provenance is inherited, so chained cuts
        collapse into one operation group rooted at the first source.
        """
        if keep_original:
            return self.model_copy(update={"quantity": quantity, "amount": amount})

        if self.is_cut_piece:
            cut_from = self.cut_from
            operation_uuid = self.cut_operation_uuid
        else:
            cut_from = self.uuid
            operation_uuid = cut_operation_uuid or _new_uuid()

        return self.model_copy(update={
            "uuid": _new_uuid(),
            "quantity": quantity,
            "amount": amount,
            "initial_quantity": quantity,
            "initial_amount": amount,
            "cut_from": cut_from,
            "cut_operation_uuid": operation_uuid,
            "join_to": None,
        })

    def clone_with_used_amounts(self) -> Lot:
        """
        The consumed part of this lot, for submission.

        Fixed-quantity lots report their per-unit length unchanged and the
        number of units taken; continuous lots report the measure taken.
        """
        used_quantity = self.quantity if self.is_fixed_quantity else self.initial_quantity - self.quantity
        used_amount = self.initial_amount - self.amount

        if used_quantity <= 0 and used_amount <= 0:
            used_quantity, used_amount = 0.0, 0.0

        return self.model_copy(update={
            "quantity": max(used_quantity, 0.0),
            "amount": max(used_amount, 0.0),
            "initial_quantity": max(used_quantity, 0.0),
            "initial_amount": max(used_amount, 0.0),
        })

    def restored(self, quantity: float, amount: float) -> Lot:
        """Same lot, same provenance, back at (quantity, amount)."""
        return self.clone_with_new_params(quantity, amount, keep_original=True)

    def reset(self) -> Lot:
        """Back to the initial snapshot with cut provenance cleared."""
        return self.model_copy(update={
            "quantity": self.initial_quantity,
            "amount": self.initial_amount,
            "cut_from": None,
            "cut_operation_uuid": None,
        })

    def with_join_to(self, result_uuid: Optional[str]) -> Lot:
        return self.model_copy(update={"join_to": result_uuid})

    def with_standard(self, standard: MaterialStandard) -> Lot:
        """Same lot re-labelled to another standard; the previous standard id is kept."""
        return self.model_copy(update={
            "material_standard": standard,
            "old_material_standard_id": self.material_standard.id,
        })
