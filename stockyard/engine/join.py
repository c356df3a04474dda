"""
Join/compose engine — merging lots end-to-end and fabricating angular piles.

Eligibility for every composite transformation reduces to one rule: all
input lots share exactly the same brand-id set. The resulting standard is
resolved through the catalog (joined opposite, angle opposite); the engine
only builds the preview lot and never touches a collection.
"""

import logging
from typing import Optional, Sequence

from ..catalog.models import MaterialStandard
from ..catalog.standards import StandardCatalog
from ..enums import JOIN_KEEPS_STANDARD_TYPES
from ..lots.filters import has_same_brand_set
from ..lots.lot import Lot

logger = logging.getLogger(__name__)


class JoinEngine:

    def __init__(self, catalog: StandardCatalog):
        self.catalog = catalog

    def is_joinable(self, lots: Sequence[Lot]) -> bool:
        """Non-empty and every lot carries the first lot's brand set."""
        if not lots:
            return False
        first = lots[0]
        return all(has_same_brand_set(first, lot) for lot in lots[1:])

    def resolve_join_standard(self, first: Lot) -> Optional[MaterialStandard]:
        """Standard the joined lot will carry, or None when the catalog has no joined variant."""
        standard = first.material_standard
        if standard.is_joined or standard.material_type.id in JOIN_KEEPS_STANDARD_TYPES:
            return standard
        return self.catalog.find_joined_opposite(standard.id)

    def preview_join(self, lots: Sequence[Lot]) -> Optional[Lot]:
        """
        N lengths laid end to end become one unit of their total length.

        Returns None when the lots are not joinable or no joined standard exists.
        """
        if not self.is_joinable(lots):
            return None

        standard = self.resolve_join_standard(lots[0])
        if standard is None:
            logger.info("Join not offered: no joined standard for %s", lots[0].material_standard.id)
            return None

        total_length = sum(lot.quantity * lot.amount for lot in lots)
        return Lot.new(
            standard,
            quantity=total_length,
            amount=1,
            old_material_standard_id=standard.old_standard_id,
            project_object_id=lots[0].project_object_id,
        )

    def preview_angle(self, pile: Optional[Lot], angular: Optional[Lot] = None) -> Optional[Lot]:
        """
        Angular pile made from a pile, optionally with an angular element.

        The element's length is not additive: the result is one unit of the
        pile's length.
        """
        if pile is None:
            return None

        standard = self.catalog.find_angle_opposite(
            pile.material_standard.id,
            angular.material_standard.id if angular is not None else None,
        )
        if standard is None:
            logger.info("Angle fabrication not offered for standard %s", pile.material_standard.id)
            return None

        return Lot.new(
            standard,
            quantity=pile.quantity,
            amount=1,
            old_material_standard_id=standard.old_standard_id,
            project_object_id=pile.project_object_id,
        )
