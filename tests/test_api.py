"""
HTTP surface tests — session endpoints through the FastAPI test client.

Tests:
1.    Health check
2-5.   Start session (catalog references, unsupported kind, unknown standard, bad standards)
6-9.   Cut flow with failure mapping, undo and submission
10-11. Join flow through select/confirm/delete
12.    Unknown and closed sessions
"""


def _material(material_id, standard_id, quantity, amount):
    return {
        "id": material_id,
        "attributes": {"quantity": quantity, "amount": amount},
        "relationships": {"new_standard": {"id": standard_id}},
    }


def _start(client, *materials, kind=1):
    response = client.post("/api/sessions/start", json={"kind": kind, "materials": list(materials)})
    assert response.status_code == 200
    return response.json()


# ============================================================
# Health and start
# ============================================================

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_start_session(client):
    """Materials referencing seeded standards become the session's source."""
    state = _start(client, _material(11, 1, 12, 5), _material(12, 8, 3, 10))
    assert state["kind"] == 1
    assert [lot["id"] for lot in state["source"]] == [11, 12]
    assert state["source"][0]["total_weight"] == 6.0
    assert state["selected"] == []
    assert state["preview"] is None


def test_start_session_unsupported_kind(client):
    """Known server codes without a transformation are refused."""
    response = client.post("/api/sessions/start", json={"kind": 4, "materials": []})
    assert response.status_code == 400


def test_start_session_unknown_standard(client):
    """A material referencing a standard missing from the catalog is a 409."""
    response = client.post("/api/sessions/start", json={"kind": 1, "materials": [_material(11, 999, 12, 5)]})
    assert response.status_code == 409


def test_start_session_malformed_standards(client):
    """A standard record that cannot be read is a 400, like a bad material record."""
    response = client.post("/api/sessions/start", json={
        "kind": 1, "materials": [], "standards": [{"id": 1}],
    })
    assert response.status_code == 400

    response = client.post("/api/sessions/start", json={
        "kind": 1, "materials": [], "standards": [{"id": 1, "attributes": {}}],
    })
    assert response.status_code == 400


# ============================================================
# Cut flow
# ============================================================

def test_cut_and_state(client):
    """A cut returns the result piece and shows up in the session state."""
    state = _start(client, _material(11, 1, 12, 5))
    session_id = state["session_id"]
    lot_uuid = state["source"][0]["uuid"]

    response = client.post(f"/api/sessions/{session_id}/cut", json={
        "lot_uuid": lot_uuid, "cut_volume": 5, "cut_quantity": 4,
    })
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert (body["lot"]["quantity"], body["lot"]["amount"]) == (5, 4)

    state = client.get(f"/api/sessions/{session_id}").json()
    assert len(state["selected"]) == 2
    assert state["source"][0]["amount"] == 3
    assert state["source"][0]["is_changed"] is True


def test_invalid_cut_is_422(client):
    """Failed outcomes answer 422 with the failure reason."""
    state = _start(client, _material(11, 1, 12, 5))
    response = client.post(f"/api/sessions/{state['session_id']}/cut", json={
        "lot_uuid": state["source"][0]["uuid"], "cut_volume": 13, "cut_quantity": 1,
    })
    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "invalid_cut"

    # Piles are cut in whole pieces
    response = client.post(f"/api/sessions/{state['session_id']}/cut", json={
        "lot_uuid": state["source"][0]["uuid"], "cut_volume": 5, "cut_quantity": 2.5,
    })
    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "invalid_cut"


def test_max_cut_and_undo(client):
    """max-cut reports capacity; undo-cut puts the pile back."""
    state = _start(client, _material(11, 1, 12, 5))
    session_id = state["session_id"]
    lot_uuid = state["source"][0]["uuid"]

    response = client.post(f"/api/sessions/{session_id}/max-cut", json={"lot_uuid": lot_uuid, "cut_volume": 5})
    assert response.json()["max_cut_quantity"] == 10

    piece = client.post(f"/api/sessions/{session_id}/cut", json={
        "lot_uuid": lot_uuid, "cut_volume": 5, "cut_quantity": 3,
    }).json()["lot"]
    response = client.post(f"/api/sessions/{session_id}/undo-cut", json={"lot_uuid": piece["uuid"]})
    assert response.status_code == 200

    state = client.get(f"/api/sessions/{session_id}").json()
    assert state["selected"] == []
    assert state["source"][0]["amount"] == 5


def test_submission_payload(client):
    """The submission endpoint returns the payload without sending it anywhere."""
    state = _start(client, _material(11, 1, 12, 5))
    session_id = state["session_id"]
    client.post(f"/api/sessions/{session_id}/cut", json={
        "lot_uuid": state["source"][0]["uuid"], "cut_volume": 5, "cut_quantity": 4,
    })

    response = client.post(f"/api/sessions/{session_id}/submission", json={
        "to_project_object_id": 7, "departure_at": "2024-05-01T08:30:00+00:00",
    })
    assert response.status_code == 200
    payload = response.json()
    assert payload["transformation_type_id"] == 1
    assert payload["to_project_object_id"] == 7
    assert payload["materials_to_transform"] == [{"id": 11, "amount": 2.0, "quantity": 12.0}]
    assert len(payload["materials_after_transform"]) == 2


# ============================================================
# Join flow
# ============================================================

def test_join_flow(client):
    """Select two piles, confirm, then delete the result to restore the source."""
    state = _start(client, _material(31, 1, 12, 2), _material(32, 1, 10, 1), kind=2)
    session_id = state["session_id"]
    first, second = (lot["uuid"] for lot in state["source"])

    candidates = client.get(f"/api/sessions/{session_id}/candidates").json()["candidates"]
    assert len(candidates) == 2

    client.post(f"/api/sessions/{session_id}/select", json={"lot_uuid": first})
    response = client.post(f"/api/sessions/{session_id}/select", json={"lot_uuid": second})
    assert response.json()["preview"]["quantity"] == 22

    result = client.post(f"/api/sessions/{session_id}/confirm").json()["lot"]
    assert result["standard_id"] == 2

    response = client.delete(f"/api/sessions/{session_id}/results/{result['uuid']}")
    assert response.status_code == 200
    state = client.get(f"/api/sessions/{session_id}").json()
    assert state["result"] == []
    assert [lot["amount"] for lot in state["source"]] == [2, 1]


def test_confirm_nothing_selected(client):
    state = _start(client, _material(31, 1, 12, 2), kind=2)
    response = client.post(f"/api/sessions/{state['session_id']}/confirm")
    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "nothing_selected"


# ============================================================
# Unknown sessions
# ============================================================

def test_unknown_and_closed_session(client):
    """Unknown ids are 404; a closed session is gone."""
    assert client.get("/api/sessions/nope").status_code == 404
    assert client.post("/api/sessions/nope/confirm").status_code == 404

    state = _start(client, _material(11, 1, 12, 5))
    session_id = state["session_id"]
    assert client.delete(f"/api/sessions/{session_id}").status_code == 200
    assert client.get(f"/api/sessions/{session_id}").status_code == 404
    assert client.delete(f"/api/sessions/{session_id}").status_code == 404
