"""
Transformation Session API — drives a TransformationSession over HTTP.

POST   /api/sessions/start                    — Open a session over a set of inventory records
GET    /api/sessions/{id}                     — Source, selected, result and current preview
POST   /api/sessions/{id}/kind                — Switch transformation kind (empty session only)
GET    /api/sessions/{id}/candidates          — Source lots the current kind accepts next
POST   /api/sessions/{id}/max-cut             — Largest cut quantity for a cut length
POST   /api/sessions/{id}/cut                 — Cut a source lot
POST   /api/sessions/{id}/select              — Lift one unit into a join/angle selection
POST   /api/sessions/{id}/confirm             — Move the preview into the results
POST   /api/sessions/{id}/undo-cut            — Fold a cut operation back into its original
POST   /api/sessions/{id}/restore             — Reset a source lot to how it was loaded
POST   /api/sessions/{id}/standard            — Re-label a selected piece
POST   /api/sessions/{id}/results/{uuid}/edit — Reopen a confirmed result
DELETE /api/sessions/{id}/results/{uuid}      — Delete a result and undo its cuts
POST   /api/sessions/{id}/clear               — Back to the loaded state
POST   /api/sessions/{id}/submission          — Payload for the submission endpoint
DELETE /api/sessions/{id}                     — Close the session

Failed actions answer 422 with the failure reason; unknown sessions 404;
inconsistent data (InvariantViolation) 409.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..adapters import catalog_from_records, lots_from_api
from ..catalog.standards import StandardCatalog
from ..errors import InvariantViolation, SessionNotFound
from ..schemas import (
    ChangeStandardRequest, CutRequest, LotRequest, MaxCutRequest, OutcomeView,
    SessionState, SetKindRequest, StartSessionRequest, SubmissionRequest,
    LotView, lot_views,
)
from ..session import Outcome, SessionRegistry, TransformationSession
from ..store import get_catalog, get_registry
from ..transformations.registry import has_transformation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["transformation-sessions"])


# --- Helpers ---

def _get_session(registry: SessionRegistry, session_id: str) -> TransformationSession:
    try:
        return registry.get(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")


def _state(session: TransformationSession) -> SessionState:
    try:
        snapshot = session.snapshot()
    except InvariantViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    return SessionState(
        session_id=session.id,
        kind=snapshot.kind,
        source=lot_views(snapshot.source),
        selected=lot_views(snapshot.selected),
        result=lot_views(snapshot.result),
        preview=LotView.from_lot(snapshot.preview) if snapshot.preview is not None else None,
    )


def _respond(outcome: Outcome) -> OutcomeView:
    """Outcome as a response body; failures become 422."""
    if not outcome.ok:
        raise HTTPException(status_code=422, detail={
            "reason": outcome.reason.value if outcome.reason else None,
            "detail": outcome.detail,
        })
    return OutcomeView(
        ok=True,
        lot=LotView.from_lot(outcome.lot) if outcome.lot is not None else None,
        lots=lot_views(outcome.lots),
        preview=LotView.from_lot(outcome.preview) if outcome.preview is not None else None,
    )


def _run(action, *args) -> OutcomeView:
    try:
        outcome = action(*args)
    except InvariantViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _respond(outcome)


# --- Endpoints ---

@router.post("/start")
def start_session(
    request: StartSessionRequest,
    catalog: StandardCatalog = Depends(get_catalog),
    registry: SessionRegistry = Depends(get_registry),
):
    """
    Open a session.

    Materials are server-shaped records; a record may embed its full standard
    or reference one of the catalog's by id. Passing standards replaces the
    seeded catalog for this session only.
    """
    if not has_transformation(request.kind):
        raise HTTPException(status_code=400, detail=f"Transformation kind {request.kind.name} is not supported")

    try:
        if request.standards:
            catalog = catalog_from_records(request.standards)
        source = lots_from_api(request.materials, catalog)
    except InvariantViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (KeyError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Bad material or standard record: {e}")

    session = registry.add(TransformationSession(catalog, source, request.kind))
    logger.info("Opened session %s (%s) with %d lot(s)", session.id, session.kind.name, len(source))
    return _state(session)


@router.get("/{session_id}")
def get_session_state(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    return _state(_get_session(registry, session_id))


@router.post("/{session_id}/kind")
def set_kind(session_id: str, request: SetKindRequest, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return _run(session.set_kind, request.kind)


@router.get("/{session_id}/candidates")
def get_candidates(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return {"candidates": lot_views(session.candidates())}


@router.post("/{session_id}/max-cut")
def max_cut(session_id: str, request: MaxCutRequest, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return {
        "lot_uuid": request.lot_uuid,
        "max_cut_quantity": session.max_cut_amount(request.lot_uuid, request.cut_volume, request.cut_type),
    }


@router.post("/{session_id}/cut")
def cut_lot(session_id: str, request: CutRequest, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return _run(session.cut, request.lot_uuid, request.cut_volume, request.cut_quantity, request.cut_type)


@router.post("/{session_id}/select")
def select_lot(session_id: str, request: LotRequest, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return _run(session.select, request.lot_uuid)


@router.post("/{session_id}/confirm")
def confirm(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return _run(session.confirm)


@router.post("/{session_id}/undo-cut")
def undo_cut(session_id: str, request: LotRequest, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return _run(session.undo_cut, request.lot_uuid)


@router.post("/{session_id}/restore")
def restore_source_lot(session_id: str, request: LotRequest, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return _run(session.restore_source_lot, request.lot_uuid)


@router.post("/{session_id}/standard")
def change_lot_standard(session_id: str, request: ChangeStandardRequest,
                        registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return _run(session.change_lot_standard, request.lot_uuid, request.standard_id)


@router.post("/{session_id}/results/{result_uuid}/edit")
def edit_join_result(session_id: str, result_uuid: str, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return _run(session.edit_join_result, result_uuid)


@router.delete("/{session_id}/results/{result_uuid}")
def delete_join_result(session_id: str, result_uuid: str, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return _run(session.delete_join_result, result_uuid)


@router.post("/{session_id}/clear")
def clear_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    session.clear()
    return _state(session)


@router.post("/{session_id}/submission")
def build_submission(session_id: str, request: SubmissionRequest, registry: SessionRegistry = Depends(get_registry)):
    """Payload for the server's transformation endpoint. Nothing is sent from here."""
    session = _get_session(registry, session_id)
    payload = session.build_submission(
        to_project_object_id=request.to_project_object_id,
        to_responsible_user_id=request.to_responsible_user_id,
        departure_at=request.departure_at,
        comment=request.comment,
    )
    return payload.model_dump()


@router.delete("/{session_id}")
def close_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    try:
        registry.drop(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"session_id": session_id, "closed": True}
