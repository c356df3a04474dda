"""
Transformation session — applies engine results to three lot collections.

  source    the inventory being drawn down
  selected  pieces cut or picked for the current operation
  result    confirmed composite lots (joined lengths, angular piles)

Every action is compute-then-commit: it works on staged copies of the
collections and swaps them in only once the whole computation succeeded.
Expected failures come back as Outcome(ok=False, reason=...) with nothing
changed; InvariantViolation is logged and re-raised, again with nothing
changed. Actions on one session are serialised by its lock.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union
from uuid import uuid4

from pydantic import BaseModel

from .catalog.standards import StandardCatalog
from .config import settings
from .engine.cut import CutEngine, CutResult
from .enums import CutType, FailureReason, TransformationKind
from .errors import InvariantViolation, SessionNotFound
from .lots.collection import LotCollection
from .lots.filters import has_same_brand_set
from .lots.lot import Lot
from .submission import TransformationPayload, build_payload
from .transformations.registry import get_transformation

logger = logging.getLogger(__name__)


class Outcome(BaseModel):
    ok: bool
    reason: Optional[FailureReason] = None
    detail: str = ""
    lot: Optional[Lot] = None
    lots: list[Lot] = []
    preview: Optional[Lot] = None

    @classmethod
    def success(cls, lot: Optional[Lot] = None, lots: Optional[list[Lot]] = None,
                preview: Optional[Lot] = None) -> "Outcome":
        return cls(ok=True, lot=lot, lots=lots or [], preview=preview)

    @classmethod
    def failure(cls, reason: FailureReason, detail: str = "") -> "Outcome":
        return cls(ok=False, reason=reason, detail=detail)


@dataclass
class _Staged:
    source: LotCollection
    selected: LotCollection
    result: LotCollection

    def holder_of(self, uuid: str) -> Optional[LotCollection]:
        for collection in (self.source, self.selected):
            if uuid in collection:
                return collection
        return None


@dataclass
class SessionSnapshot:
    kind: TransformationKind
    source: LotCollection
    selected: LotCollection
    result: LotCollection
    preview: Optional[Lot]


class TransformationSession:

    def __init__(
        self,
        catalog: StandardCatalog,
        source: LotCollection,
        kind: Union[TransformationKind, int] = TransformationKind.CUT,
        session_id: Optional[str] = None,
        cut_engine: Optional[CutEngine] = None,
        zero_out: Optional[bool] = None,
    ):
        self.id = session_id or str(uuid4())
        self.catalog = catalog
        self.cut_engine = cut_engine or CutEngine()
        self.transformation = get_transformation(kind, catalog, self.cut_engine)
        self.zero_out = settings.ZERO_OUT_CONSUMED if zero_out is None else zero_out

        self.source = LotCollection(source)
        self.selected = LotCollection()
        self.result = LotCollection()
        self._initial_source = self.source.copy()
        self._lock = threading.RLock()

    @property
    def kind(self) -> TransformationKind:
        return self.transformation.kind

    # --- Staging ---

    def _stage(self) -> _Staged:
        return _Staged(self.source.copy(), self.selected.copy(), self.result.copy())

    def _commit(self, staged: _Staged) -> None:
        self.source = staged.source
        self.selected = staged.selected
        self.result = staged.result

    @contextmanager
    def _action(self, name: str):
        with self._lock:
            try:
                yield
            except InvariantViolation:
                logger.exception("Session %s: %s aborted on invariant violation", self.id, name)
                raise

    # --- Queries ---

    def candidates(self) -> LotCollection:
        """Source lots the current kind accepts next."""
        with self._lock:
            return self.transformation.filter_lots(self.source, self.selected)

    def preview(self) -> Optional[Lot]:
        with self._action("preview"):
            return self.transformation.preview(self.selected)

    def snapshot(self) -> SessionSnapshot:
        """All three collections and the preview, read under one lock."""
        with self._action("snapshot"):
            return SessionSnapshot(
                kind=self.kind,
                source=self.source.copy(),
                selected=self.selected.copy(),
                result=self.result.copy(),
                preview=self.transformation.preview(self.selected),
            )

    def max_cut_amount(self, lot_uuid: str, cut_volume: float,
                       cut_type: Union[CutType, str] = CutType.STANDARD) -> int:
        with self._lock:
            return self.cut_engine.get_max_possible_amount(
                self.source.find_by_uuid(lot_uuid), cut_volume, cut_type,
            )

    # --- Kind ---

    def set_kind(self, kind: Union[TransformationKind, int]) -> Outcome:
        with self._action("set_kind"):
            if not self.selected.is_empty() or not self.result.is_empty():
                return Outcome.failure(FailureReason.UNSUPPORTED_KIND, "Finish or clear the current selection first")
            try:
                self.transformation = get_transformation(kind, self.catalog, self.cut_engine)
            except ValueError as e:
                return Outcome.failure(FailureReason.UNSUPPORTED_KIND, str(e))
            return Outcome.success()

    # --- Cutting ---

    def _apply_cut(self, staged: _Staged, lot: Lot, cut_result: CutResult) -> None:
        for piece in cut_result.pieces():
            staged.selected.add(piece)

        if cut_result.unused_part is not None:
            staged.source.replace_by_uuid(lot.uuid, cut_result.unused_part)
        elif self.zero_out:
            # Fully consumed: keep a zero lot so the undo path still finds it
            if lot.is_fixed_quantity:
                zeroed = lot.clone_with_new_params(lot.quantity, 0, keep_original=True)
            else:
                zeroed = lot.clone_with_new_params(0, lot.amount, keep_original=True)
            staged.source.replace_by_uuid(lot.uuid, zeroed)
        else:
            staged.source.remove_by_uuid(lot.uuid)

    def cut(self, lot_uuid: str, cut_volume: float, cut_quantity: float,
            cut_type: Union[CutType, str] = CutType.STANDARD) -> Outcome:
        with self._action("cut"):
            lot = self.source.find_by_uuid(lot_uuid)
            if lot is None:
                return Outcome.failure(FailureReason.LOT_NOT_FOUND, f"No source lot {lot_uuid}")

            cut_result = self.cut_engine.cut(lot, cut_volume, cut_quantity, cut_type)
            if cut_result is None:
                return Outcome.failure(
                    FailureReason.INVALID_CUT,
                    f"Cannot cut {cut_quantity} x {cut_volume} from {lot.quantity} x {lot.amount}",
                )

            staged = self._stage()
            self._apply_cut(staged, lot, cut_result)
            self._commit(staged)

            logger.info("Session %s: cut %s into %d piece(s)", self.id, lot_uuid, len(cut_result.pieces()))
            return Outcome.success(lot=cut_result.result, lots=cut_result.pieces())

    # --- Selection for composite kinds ---

    def select(self, lot_uuid: str) -> Outcome:
        """Lift one unit of a source lot into the selection and refresh the preview."""
        with self._action("select"):
            if not self.transformation.selects_units:
                return Outcome.failure(FailureReason.UNSUPPORTED_KIND, f"{self.kind.name} does not select units")

            lot = self.source.find_by_uuid(lot_uuid)
            if lot is None:
                return Outcome.failure(FailureReason.LOT_NOT_FOUND, f"No source lot {lot_uuid}")

            if lot_uuid not in self.transformation.filter_lots(self.source, self.selected):
                first = self.transformation.pending(self.selected).first()
                if self.kind == TransformationKind.JOIN and first is not None \
                        and not has_same_brand_set(first, lot):
                    return Outcome.failure(FailureReason.INCOMPATIBLE_BRANDS,
                                           "Selected lots must share the same brand set")
                return Outcome.failure(FailureReason.LOT_NOT_AVAILABLE,
                                       f"Lot {lot_uuid} cannot be used for {self.kind.name}")

            cut_result = self.cut_engine.cut_one_part(lot)
            if cut_result is None:
                return Outcome.failure(FailureReason.INVALID_CUT, f"Lot {lot_uuid} has no whole unit left")

            staged = self._stage()
            self._apply_cut(staged, lot, cut_result)
            preview = self.transformation.preview(staged.selected)
            self._commit(staged)

            logger.info("Session %s: selected one unit of %s", self.id, lot_uuid)
            return Outcome.success(lot=cut_result.result, preview=preview)

    def confirm(self) -> Outcome:
        """Move the preview into result and tag every contributing lot with join_to."""
        with self._action("confirm"):
            if not self.transformation.selects_units:
                return Outcome.failure(FailureReason.UNSUPPORTED_KIND, f"{self.kind.name} has no composite result")

            pending = self.transformation.pending(self.selected)
            if pending.is_empty():
                return Outcome.failure(FailureReason.NOTHING_SELECTED)

            preview = self.transformation.preview(self.selected)
            if preview is None:
                joinable = self.transformation.join_engine.is_joinable(pending.get_all())
                if self.kind == TransformationKind.JOIN and not joinable:
                    return Outcome.failure(FailureReason.INCOMPATIBLE_BRANDS)
                return Outcome.failure(FailureReason.NO_OPPOSITE_STANDARD,
                                       "The catalog has no standard for this combination")

            staged = self._stage()
            staged.result.add(preview)
            for lot in pending:
                staged.selected.replace_by_uuid(lot.uuid, lot.with_join_to(preview.uuid))
            self._commit(staged)

            logger.info("Session %s: confirmed %s from %d lot(s)", self.id, preview.uuid, len(pending))
            return Outcome.success(lot=preview, lots=pending.get_all())

    # --- Undo ---

    def _undo_cut_staged(self, staged: _Staged, lot: Lot, allow_joined: bool = False) -> Optional[Outcome]:
        """Undo lot's whole cut operation inside staged. Returns a failure Outcome or None."""
        if not lot.is_cut_piece:
            return Outcome.failure(FailureReason.NOT_CUT_PIECE, f"Lot {lot.uuid} was not cut from anything")

        original = staged.source.find_by_uuid_in(lot.cut_from, staged.selected)
        if original is None:
            return Outcome.failure(FailureReason.ORIGINAL_NOT_FOUND, f"Original lot {lot.cut_from} is gone")

        operation_uuid = lot.cut_operation_uuid
        group = [
            piece
            for collection in (staged.selected, staged.source)
            for piece in collection.filter_by_operation(operation_uuid)
            if piece.uuid != original.uuid
        ]
        if not allow_joined and any(piece.join_to for piece in group):
            return Outcome.failure(FailureReason.ALREADY_JOINED,
                                   "Part of this cut is already merged into a result")

        undo = self.cut_engine.undo_cut(original, group)

        for piece in group:
            staged.selected.remove_by_uuid(piece.uuid)
            staged.source.remove_by_uuid(piece.uuid)

        restored = original.restored(undo.new_quantity, undo.new_amount)
        holder = staged.holder_of(original.uuid)
        holder.replace_by_uuid(original.uuid, restored)
        return None

    def undo_cut(self, lot_uuid: str) -> Outcome:
        """Put every lot of lot_uuid's cut operation back into its original."""
        with self._action("undo_cut"):
            lot = self.selected.find_by_uuid_in(lot_uuid, self.source)
            if lot is None:
                return Outcome.failure(FailureReason.LOT_NOT_FOUND, f"No lot {lot_uuid}")

            staged = self._stage()
            failure = self._undo_cut_staged(staged, lot)
            if failure is not None:
                return failure
            self._commit(staged)

            restored = self.source.find_by_uuid_in(lot.cut_from, self.selected)
            logger.info("Session %s: undid cut operation %s", self.id, lot.cut_operation_uuid)
            return Outcome.success(lot=restored)

    def restore_source_lot(self, lot_uuid: str) -> Outcome:
        """Reset a source lot to its initial snapshot, dropping every lot cut from it."""
        with self._action("restore_source_lot"):
            lot = self.source.find_by_uuid(lot_uuid)
            if lot is None:
                return Outcome.failure(FailureReason.LOT_NOT_FOUND, f"No source lot {lot_uuid}")
            if not lot.is_changed:
                return Outcome.failure(FailureReason.UNCHANGED)

            derived = self.selected.filter_cut_from_lot(lot).get_all() + self.source.filter_cut_from_lot(lot).get_all()
            if any(piece.join_to for piece in derived):
                return Outcome.failure(FailureReason.ALREADY_JOINED,
                                       "Part of this lot is already merged into a result")

            staged = self._stage()
            for piece in derived:
                staged.selected.remove_by_uuid(piece.uuid)
                staged.source.remove_by_uuid(piece.uuid)
            restored = lot.reset()
            staged.source.replace_by_uuid(lot.uuid, restored)
            self._commit(staged)

            logger.info("Session %s: restored %s, dropped %d derived lot(s)", self.id, lot_uuid, len(derived))
            return Outcome.success(lot=restored)

    def edit_join_result(self, result_uuid: str) -> Outcome:
        """Drop a confirmed result and return its lots to the pending selection."""
        with self._action("edit_join_result"):
            result_lot = self.result.find_by_uuid(result_uuid)
            if result_lot is None:
                return Outcome.failure(FailureReason.RESULT_NOT_FOUND, f"No result lot {result_uuid}")

            staged = self._stage()
            staged.result.remove_by_uuid(result_uuid)
            released = []
            for lot in self.selected.filter_joined_to(result_uuid):
                freed = lot.with_join_to(None)
                staged.selected.replace_by_uuid(lot.uuid, freed)
                released.append(freed)
            self._commit(staged)

            logger.info("Session %s: reopened result %s (%d lot(s))", self.id, result_uuid, len(released))
            return Outcome.success(lots=released, preview=self.transformation.preview(self.selected))

    def delete_join_result(self, result_uuid: str) -> Outcome:
        """Drop a confirmed result and undo the cuts that produced its lots."""
        with self._action("delete_join_result"):
            result_lot = self.result.find_by_uuid(result_uuid)
            if result_lot is None:
                return Outcome.failure(FailureReason.RESULT_NOT_FOUND, f"No result lot {result_uuid}")

            staged = self._stage()
            staged.result.remove_by_uuid(result_uuid)
            contributors = self.selected.filter_joined_to(result_uuid).get_all()
            for lot in contributors:
                staged.selected.replace_by_uuid(lot.uuid, lot.with_join_to(None))

            for lot in contributors:
                current = staged.selected.find_by_uuid(lot.uuid)
                # Already folded back by an earlier lot of the same cut operation
                if current is None:
                    continue
                if not current.is_cut_piece:
                    continue
                failure = self._undo_cut_staged(staged, current, allow_joined=True)
                if failure is not None:
                    return failure
            self._commit(staged)

            logger.info("Session %s: deleted result %s", self.id, result_uuid)
            return Outcome.success(lot=result_lot)

    # --- Misc ---

    def change_lot_standard(self, lot_uuid: str, standard_id: int) -> Outcome:
        """Re-label a selected piece to another catalog standard."""
        with self._action("change_lot_standard"):
            lot = self.selected.find_by_uuid(lot_uuid)
            if lot is None:
                return Outcome.failure(FailureReason.LOT_NOT_FOUND, f"No selected lot {lot_uuid}")
            standard = self.catalog.find_by_id(standard_id)
            if standard is None:
                return Outcome.failure(FailureReason.STANDARD_NOT_FOUND, f"No standard {standard_id}")

            staged = self._stage()
            relabelled = lot.with_standard(standard)
            staged.selected.replace_by_uuid(lot_uuid, relabelled)
            self._commit(staged)
            return Outcome.success(lot=relabelled)

    def clear(self) -> None:
        """Drop every selection and result and put the source back as it was loaded."""
        with self._lock:
            self.source = self._initial_source.copy()
            self.selected = LotCollection()
            self.result = LotCollection()

    def produced_lots(self) -> list[Lot]:
        """What a submission reports as produced: cut pieces for CUT, results otherwise."""
        if self.transformation.selects_units:
            return self.result.get_all()
        return self.transformation.with_stock(self.selected).get_all()

    def build_submission(
        self,
        to_project_object_id: Optional[int] = None,
        to_responsible_user_id: Optional[int] = None,
        departure_at: Optional[datetime] = None,
        comment: Optional[str] = None,
    ) -> TransformationPayload:
        with self._lock:
            return build_payload(
                self.kind,
                produced=self.produced_lots(),
                drawn=self.source.filter_changed(),
                to_project_object_id=to_project_object_id,
                to_responsible_user_id=to_responsible_user_id,
                departure_at=departure_at,
                comment=comment,
            )


class SessionRegistry:
    """In-memory sessions by id. Sessions never share collections."""

    def __init__(self):
        self._sessions: dict[str, TransformationSession] = {}
        self._lock = threading.Lock()

    def add(self, session: TransformationSession) -> TransformationSession:
        with self._lock:
            self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> TransformationSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def drop(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFound(session_id)

    def __len__(self) -> int:
        return len(self._sessions)
