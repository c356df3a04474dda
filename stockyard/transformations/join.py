from typing import Optional

from ..enums import TransformationKind
from ..lots.collection import LotCollection
from ..lots.filters import available_for_join, find_compatible_lots
from ..lots.lot import Lot
from .base import BaseTransformation


class JoinTransformation(BaseTransformation):
    """
    Joining (stitching) by length.

    Piles, I-beams and straight-seam pipes that are plain or already joined.
    Once something is selected, only lots of the same type and brand set
    remain candidates.
    """

    kind = TransformationKind.JOIN

    def filter_lots(self, source: LotCollection, selected: LotCollection) -> LotCollection:
        candidates = self.with_stock(available_for_join(source))
        first = self.pending(selected).first()
        if first is None:
            return candidates
        return find_compatible_lots(candidates, first)

    def preview(self, selected: LotCollection) -> Optional[Lot]:
        return self.join_engine.preview_join(self.pending(selected).get_all())
