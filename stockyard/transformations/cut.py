from typing import Optional

from ..enums import TransformationKind
from ..lots.collection import LotCollection
from ..lots.filters import available_for_cut
from ..lots.lot import Lot
from .base import BaseTransformation


class CutTransformation(BaseTransformation):
    """Cutting by length. Pieces go straight to the selection; there is no composite result."""

    kind = TransformationKind.CUT
    selects_units = False

    def filter_lots(self, source: LotCollection, selected: LotCollection) -> LotCollection:
        return self.with_stock(available_for_cut(source))

    def preview(self, selected: LotCollection) -> Optional[Lot]:
        return None
