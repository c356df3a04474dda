from typing import Optional

from ..enums import MaterialTypes, TransformationKind
from ..lots.collection import LotCollection
from ..lots.filters import filter_by_material_type
from ..lots.lot import Lot
from .base import BaseTransformation


class AngleTransformation(BaseTransformation):
    """
    Angular pile fabrication from one pile and, optionally, one angular element.

    The pile is picked first; after that only an angular element may join
    the selection. Brands belong to a single type, so the element's brand
    set is not compared with the pile's — the catalog lookup takes the union.
    """

    kind = TransformationKind.ANGLE

    def filter_lots(self, source: LotCollection, selected: LotCollection) -> LotCollection:
        pile, angular = self.split_selection(selected)
        candidates = self.with_stock(source)
        if pile is None:
            return filter_by_material_type(candidates, MaterialTypes.PILE)
        if angular is None:
            return filter_by_material_type(candidates, MaterialTypes.ANGULAR_ELEMENT)
        return LotCollection([])

    def preview(self, selected: LotCollection) -> Optional[Lot]:
        pile, angular = self.split_selection(selected)
        return self.join_engine.preview_angle(pile, angular)

    def split_selection(self, selected: LotCollection) -> tuple[Optional[Lot], Optional[Lot]]:
        pending = self.pending(selected)
        pile = filter_by_material_type(pending, MaterialTypes.PILE).first()
        angular = filter_by_material_type(pending, MaterialTypes.ANGULAR_ELEMENT).first()
        return pile, angular
