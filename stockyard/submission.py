"""
Submission payload — what a confirmed transformation hands to the API layer.

materials_after_transform lists what the transformation produced (by
standard); materials_to_transform lists the inventory lots drawn down, as
consumed deltas (Lot.clone_with_used_amounts).
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import BaseModel

from .enums import TransformationKind
from .lots.lot import Lot


class MaterialAfterTransform(BaseModel):
    standard_id: int
    amount: float
    quantity: float


class MaterialToTransform(BaseModel):
    id: int
    amount: float
    quantity: float


class TransformationPayload(BaseModel):
    to_project_object_id: Optional[int] = None
    to_responsible_user_id: Optional[int] = None
    departure_at: str
    transformation_type_id: int
    comment: str = ""
    materials_after_transform: list[MaterialAfterTransform] = []
    materials_to_transform: list[MaterialToTransform] = []


def build_payload(
    kind: TransformationKind,
    produced: Iterable[Lot],
    drawn: Iterable[Lot],
    to_project_object_id: Optional[int] = None,
    to_responsible_user_id: Optional[int] = None,
    departure_at: Optional[datetime] = None,
    comment: Optional[str] = None,
) -> TransformationPayload:
    """Assemble the payload. Lots without a server id are not reported as drawn."""
    departure_at = departure_at or datetime.now(timezone.utc)

    after = [
        MaterialAfterTransform(
            standard_id=lot.material_standard.id,
            amount=lot.amount,
            quantity=lot.quantity,
        )
        for lot in produced
    ]

    to_transform = []
    for lot in drawn:
        if not lot.id:
            continue
        used = lot.clone_with_used_amounts()
        to_transform.append(MaterialToTransform(id=used.id, amount=used.amount, quantity=used.quantity))

    return TransformationPayload(
        to_project_object_id=to_project_object_id,
        to_responsible_user_id=to_responsible_user_id,
        departure_at=departure_at.isoformat(),
        transformation_type_id=int(kind),
        comment=comment or "",
        materials_after_transform=after,
        materials_to_transform=to_transform,
    )
