"""
Cut engine — how a lot divides into a result, remainders and an unused part.

Pure arithmetic over immutable lots. Nothing here touches a collection;
the session applies the outputs.

Two policies:
  standard — extract cut_quantity pieces of cut_volume, packing as many
             pieces per physical unit as fit; per-unit leftovers become
             remainder lots.
  equal    — take cut_quantity whole units and trim each to cut_volume;
             the trimmed-off lengths become one aggregate remainder lot.
             Fixed-quantity lots only.

Fixed-quantity lots (piles, beams, pipes) are supplied in discrete lengths:
quantity is the per-unit length, amount the unit count. Continuous lots
(sheet, bar stock) are divisible by volume = quantity × amount.

Invalid parameters never raise: is_valid_cut() returns False and cut()
returns None.
"""

import logging
import math
from typing import Optional, Union
from uuid import uuid4

from pydantic import BaseModel

from ..enums import CutType
from ..lots.lot import Lot

logger = logging.getLogger(__name__)

EPSILON = 1e-9
# Tolerance for snapping reconstructed unit counts back to whole units
UNIT_SNAP_TOLERANCE = 1e-6


class CutResult(BaseModel):
    result: Lot
    remainder: list[Lot] = []
    unused_part: Optional[Lot] = None

    def pieces(self) -> list[Lot]:
        """result + remainders — the lots that leave the source collection."""
        return [self.result, *self.remainder]


class UndoResult(BaseModel):
    lot_uuid: str
    new_amount: float
    new_quantity: float


def _cut_type(value: Union[CutType, str]) -> CutType:
    return value if isinstance(value, CutType) else CutType(value)


def _parts_from_one_unit(quantity: float, cut_volume: float) -> int:
    return math.floor(quantity / cut_volume + EPSILON)


class CutEngine:
    """Stateless — one instance can serve every session."""

    def is_valid_cut(self, lot: Lot, cut_volume: float, cut_quantity: float,
                     cut_type: Union[CutType, str] = CutType.STANDARD) -> bool:
        cut_type = _cut_type(cut_type)

        if cut_volume < EPSILON or cut_quantity <= 0:
            return False

        if not lot.is_fixed_quantity and cut_type == CutType.EQUAL:
            logger.warning("Equal cut is not applicable to continuous material %s", lot.uuid)
            return False

        if lot.is_fixed_quantity:
            # Pieces of a fixed-length lot are counted in whole units
            if abs(cut_quantity - round(cut_quantity)) > EPSILON:
                return False
            if cut_volume > lot.quantity + EPSILON:
                return False
            if cut_type == CutType.STANDARD:
                parts = _parts_from_one_unit(lot.quantity, cut_volume)
                if parts <= 0:
                    return False
                return cut_quantity <= parts * lot.amount
            return cut_quantity <= lot.amount

        return cut_volume * cut_quantity <= lot.quantity * lot.amount + EPSILON

    def get_max_possible_amount(self, lot: Optional[Lot], cut_volume: float,
                                cut_type: Union[CutType, str] = CutType.STANDARD) -> int:
        """Largest cut_quantity is_valid_cut() accepts for cut_volume; 0 when infeasible."""
        if lot is None:
            return 0
        cut_type = _cut_type(cut_type)

        if cut_volume < EPSILON:
            return 0

        if cut_type == CutType.EQUAL:
            if not lot.is_fixed_quantity or cut_volume > lot.quantity + EPSILON:
                return 0
            return math.floor(lot.amount)

        if not lot.is_fixed_quantity:
            total_volume = lot.quantity * lot.amount
            if total_volume <= EPSILON:
                return 0
            return math.floor((total_volume + EPSILON) / cut_volume)

        if cut_volume > lot.quantity + EPSILON:
            return 0
        parts = _parts_from_one_unit(lot.quantity, cut_volume)
        if parts <= 0:
            return 0
        return math.floor(parts * lot.amount)

    def cut(self, lot: Lot, cut_volume: float, cut_quantity: float,
            cut_type: Union[CutType, str] = CutType.STANDARD) -> Optional[CutResult]:
        cut_type = _cut_type(cut_type)
        if not self.is_valid_cut(lot, cut_volume, cut_quantity, cut_type):
            logger.warning(
                "Rejected %s cut of %s: volume=%s quantity=%s (lot %s x %s)",
                cut_type.value, lot.uuid, cut_volume, cut_quantity, lot.quantity, lot.amount,
            )
            return None

        if cut_type == CutType.STANDARD:
            return self._standard_cut(lot, cut_volume, cut_quantity)
        return self._equal_cut(lot, cut_volume, cut_quantity)

    def cut_one_part(self, lot: Lot) -> Optional[CutResult]:
        """Lift one whole unit out of a lot."""
        return self.cut(lot, lot.quantity, 1, CutType.STANDARD)

    # --- Policies ---

    def _standard_cut(self, lot: Lot, cut_volume: float, cut_quantity: float) -> CutResult:
        operation_uuid = lot.cut_operation_uuid or str(uuid4())
        result = lot.clone_with_new_params(cut_volume, cut_quantity, operation_uuid)
        remainder: list[Lot] = []
        unused_part: Optional[Lot] = None

        if lot.is_fixed_quantity:
            parts = _parts_from_one_unit(lot.quantity, cut_volume)
            units_needed = math.ceil(cut_quantity / parts)
            full_units = int(cut_quantity // parts)
            remaining_parts = int(cut_quantity % parts)

            # Units cut into the full number of pieces
            if full_units > 0:
                leftover = lot.quantity - parts * cut_volume
                if leftover > EPSILON:
                    remainder.append(lot.clone_with_new_params(leftover, full_units, operation_uuid))

            # One unit only partly used
            if remaining_parts > 0:
                leftover = lot.quantity - remaining_parts * cut_volume
                if leftover > EPSILON:
                    remainder.append(lot.clone_with_new_params(leftover, 1, operation_uuid))

            if units_needed < lot.amount:
                unused_part = lot.clone_with_new_params(
                    lot.quantity, lot.amount - units_needed, operation_uuid, keep_original=True,
                )
        else:
            leftover = lot.quantity * lot.amount - cut_volume * cut_quantity
            if leftover > EPSILON and lot.amount > 0:
                unused_part = lot.clone_with_new_params(
                    leftover / lot.amount, lot.amount, operation_uuid, keep_original=True,
                )
            else:
                unused_part = lot.clone_with_new_params(0, 0, operation_uuid, keep_original=True)

        return CutResult(result=result, remainder=remainder, unused_part=unused_part)

    def _equal_cut(self, lot: Lot, cut_volume: float, cut_quantity: float) -> CutResult:
        operation_uuid = lot.cut_operation_uuid or str(uuid4())
        result = lot.clone_with_new_params(cut_volume, cut_quantity, operation_uuid)
        remainder: list[Lot] = []
        unused_part: Optional[Lot] = None

        leftover = lot.quantity - cut_volume
        if leftover > EPSILON:
            remainder.append(lot.clone_with_new_params(leftover, cut_quantity, operation_uuid))

        if cut_quantity < lot.amount:
            unused_part = lot.clone_with_new_params(
                lot.quantity, lot.amount - cut_quantity, operation_uuid, keep_original=True,
            )

        return CutResult(result=result, remainder=remainder, unused_part=unused_part)

    # --- Reversal ---

    def undo_cut(self, original: Lot, pieces: list[Lot]) -> UndoResult:
        """
        Pre-cut (amount, quantity) of original given every lot its cut produced.

        Fixed-quantity: the pieces' total length is folded back into whole
        units of original.quantity. Continuous: the total volume is spread
        back over original.amount units; a fully consumed lot comes back as
        one unit.
        """
        total_amount = sum(piece.amount for piece in pieces)
        total_volume = sum(piece.quantity * piece.amount for piece in pieces)

        new_amount = original.amount
        new_quantity = original.quantity

        if original.is_fixed_quantity:
            if original.quantity > 0:
                new_amount = original.amount + total_volume / original.quantity
            else:
                new_amount = original.amount + total_amount
            nearest = round(new_amount)
            if abs(new_amount - nearest) < UNIT_SNAP_TOLERANCE:
                new_amount = float(nearest)
        else:
            new_quantity = original.quantity + total_volume / (original.amount or 1)
            if new_quantity > 0 and original.amount == 0:
                new_amount = 1

        return UndoResult(lot_uuid=original.uuid, new_amount=new_amount, new_quantity=new_quantity)
