"""
Shared test fixtures — seeded catalog, sample lots, session factory, test client.

Seeded catalog standard ids (stockyard/data/catalog.json):
  1 pile L5-UM           2 pile L5-UM joined     3 pile L5-UM angular
  4 pile L5-UM angular + lock (brands L5-UM, UK-5)
  5 angular element UK-5 6 pile L4             7 I-beam 40B1
  8 hot-rolled sheet (continuous)               9 square pipe
"""

import pytest
from fastapi.testclient import TestClient

from stockyard.adapters import load_catalog
from stockyard.enums import TransformationKind
from stockyard.lots.collection import LotCollection
from stockyard.lots.lot import Lot
from stockyard.main import app
from stockyard.session import SessionRegistry, TransformationSession
from stockyard.store import get_registry


@pytest.fixture(scope="session")
def catalog():
    """The bundled seed catalog."""
    return load_catalog()


@pytest.fixture
def make_lot(catalog):
    """Lot factory: make_lot(standard_id, quantity, amount, id=...)."""
    def _make(standard_id, quantity, amount, **fields):
        return Lot.new(catalog.require(standard_id), quantity=quantity, amount=amount, **fields)
    return _make


@pytest.fixture
def pile_lot(make_lot):
    """Fixed-length pile: 5 units of 12 m."""
    return make_lot(1, 12, 5, id=11)


@pytest.fixture
def sheet_lot(make_lot):
    """Continuous sheet: 10 units of 3.0."""
    return make_lot(8, 3.0, 10, id=12)


@pytest.fixture
def make_session(catalog):
    """Session factory: make_session(*lots, kind=TransformationKind.CUT)."""
    def _make(*lots, kind=TransformationKind.CUT, zero_out=None):
        return TransformationSession(catalog, LotCollection(list(lots)), kind, zero_out=zero_out)
    return _make


@pytest.fixture
def client():
    """FastAPI test client with an empty session registry."""
    registry = SessionRegistry()
    app.dependency_overrides[get_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()
