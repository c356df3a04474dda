"""
Abstract base class for all transformation kinds.

Input: the session's source and selected collections
Output: candidate lots (filter_lots) and a preview lot (preview)
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..catalog.standards import StandardCatalog
from ..engine.cut import CutEngine
from ..engine.join import JoinEngine
from ..enums import TransformationKind
from ..lots.collection import LotCollection
from ..lots.lot import Lot


class BaseTransformation(ABC):
    """All transformation kinds inherit from this."""

    kind: TransformationKind
    # Whether selecting a lot lifts one unit out of the source into the selection
    selects_units: bool = True

    def __init__(self, catalog: StandardCatalog, cut_engine: Optional[CutEngine] = None):
        self.catalog = catalog
        self.cut_engine = cut_engine or CutEngine()
        self.join_engine = JoinEngine(catalog)

    @abstractmethod
    def filter_lots(self, source: LotCollection, selected: LotCollection) -> LotCollection:
        """Source lots that may be added to the current selection."""

    @abstractmethod
    def preview(self, selected: LotCollection) -> Optional[Lot]:
        """Composite lot the current selection would produce, or None."""

    # --- Helpers for all kinds ---

    def pending(self, selected: LotCollection) -> LotCollection:
        """Selected lots not yet merged into a result and not consumed."""
        return selected.filter_by(lambda lot: lot.join_to is None and lot.amount > 0 and lot.quantity > 0)

    def with_stock(self, lots: LotCollection) -> LotCollection:
        return lots.filter_by(lambda lot: lot.amount > 0 and lot.quantity > 0)
