from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from .enums import CutType, FailureReason, TransformationKind
from .lots.lot import Lot

class LotView(BaseModel):
    uuid: str
    id: int
    quantity: float
    amount: float
    initial_quantity: float
    initial_amount: float
    total_weight: float
    is_changed: bool
    locked: bool
    standard_id: int
    standard_name: str
    cut_from: Optional[str] = None
    cut_operation_uuid: Optional[str] = None
    join_to: Optional[str] = None

    @classmethod
    def from_lot(cls, lot: Lot) -> "LotView":
        return cls(
            uuid=lot.uuid,
            id=lot.id,
            quantity=lot.quantity,
            amount=lot.amount,
            initial_quantity=lot.initial_quantity,
            initial_amount=lot.initial_amount,
            total_weight=lot.total_weight,
            is_changed=lot.is_changed,
            locked=lot.locked,
            standard_id=lot.material_standard.id,
            standard_name=lot.display_name(),
            cut_from=lot.cut_from,
            cut_operation_uuid=lot.cut_operation_uuid,
            join_to=lot.join_to,
        )

def lot_views(lots) -> List[LotView]:
    return [LotView.from_lot(lot) for lot in lots]

class SessionState(BaseModel):
    session_id: str
    kind: TransformationKind
    source: List[LotView] = []
    selected: List[LotView] = []
    result: List[LotView] = []
    preview: Optional[LotView] = None

class OutcomeView(BaseModel):
    ok: bool
    reason: Optional[FailureReason] = None
    detail: str = ""
    lot: Optional[LotView] = None
    lots: List[LotView] = []
    preview: Optional[LotView] = None

class StartSessionRequest(BaseModel):
    kind: TransformationKind = TransformationKind.CUT
    materials: List[dict]  # server-shaped material records
    standards: Optional[List[dict]] = None  # overrides the seeded catalog for this session

class SetKindRequest(BaseModel):
    kind: TransformationKind

class CutRequest(BaseModel):
    lot_uuid: str
    cut_volume: float
    cut_quantity: float
    cut_type: CutType = CutType.STANDARD

class MaxCutRequest(BaseModel):
    lot_uuid: str
    cut_volume: float
    cut_type: CutType = CutType.STANDARD

class LotRequest(BaseModel):
    lot_uuid: str

class ChangeStandardRequest(BaseModel):
    lot_uuid: str
    standard_id: int

class SubmissionRequest(BaseModel):
    to_project_object_id: Optional[int] = None
    to_responsible_user_id: Optional[int] = None
    comment: Optional[str] = None
    departure_at: Optional[datetime] = None
