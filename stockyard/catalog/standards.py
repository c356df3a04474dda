"""
StandardCatalog — the collection of material standards and its lookups.

The two lookups the engine depends on:
  find_joined_opposite(standard_id)  — same brands, same properties except
                                       JOINED, opposite JOINED flag
  find_angle_opposite(pile_id, angular_element_id=None)
                                     — same brands (union of both inputs),
                                       flagged ANGULAR (+ WITH_LOCK for two inputs)

Both return at most one standard. If the catalog carries duplicates the
first match wins; find_duplicate_brand_groups() reports them.
"""

import logging
from typing import Optional

from ..base_collection import Collection
from ..enums import MaterialProperties
from ..errors import InvariantViolation
from .models import MaterialStandard

logger = logging.getLogger(__name__)


def _brand_ids(standard: MaterialStandard) -> list[int]:
    return standard.brand_ids


def _property_ids_without_joined(standard: MaterialStandard) -> list[int]:
    return [pid for pid in standard.property_ids if pid != MaterialProperties.JOINED]


class StandardCatalog(Collection[MaterialStandard]):

    def require(self, standard_id: int) -> MaterialStandard:
        """Standard by id, or InvariantViolation — callers only ask for ids lots reference."""
        standard = self.find_by_id(standard_id)
        if standard is None:
            raise InvariantViolation(f"Material standard {standard_id} is not in the catalog")
        return standard

    # --- Simple filters ---

    def find_by_property_id(self, property_id: int) -> Optional[MaterialStandard]:
        return self.find_by(lambda s: s.has_property(property_id))

    def find_by_brand_id(self, brand_id: int) -> Optional[MaterialStandard]:
        return self.find_by(lambda s: s.has_brand(brand_id))

    def find_by_type_id(self, type_id: int) -> Optional[MaterialStandard]:
        return self.find_where("material_type.id", type_id)

    def filter_by_property_id(self, property_id: int) -> "StandardCatalog":
        return self.filter_by(lambda s: s.has_property(property_id))

    def filter_by_brand_id(self, brand_id: int) -> "StandardCatalog":
        return self.filter_by(lambda s: s.has_brand(brand_id))

    def filter_by_type_id(self, type_id: int) -> "StandardCatalog":
        return self.filter_where("material_type.id", type_id)

    def filter_by_type_ids(self, type_ids: list[int]) -> "StandardCatalog":
        if not type_ids:
            return self
        return self.filter_by(lambda s: s.material_type.id in type_ids)

    def filter_by_brand_ids(self, brand_ids: list[int]) -> "StandardCatalog":
        """Standards carrying at least one of brand_ids."""
        if not brand_ids:
            return self
        return self.filter_by(lambda s: any(bid in brand_ids for bid in s.brand_ids))

    def filter_by_property_ids(self, property_ids: list[int]) -> "StandardCatalog":
        """Standards carrying at least one of property_ids."""
        if not property_ids:
            return self
        return self.filter_by(lambda s: any(pid in property_ids for pid in s.property_ids))

    def filter_joined(self) -> "StandardCatalog":
        return self.filter_by(lambda s: s.is_joined)

    def filter_not_joined(self) -> "StandardCatalog":
        return self.filter_by(lambda s: not s.is_joined)

    # --- Brand-set lookups ---

    def filter_join_opposite(self, standard_id: int) -> "StandardCatalog":
        return self.find_opposite_by_boolean(
            standard_id,
            [_brand_ids, _property_ids_without_joined],
            lambda s: s.is_joined,
        )

    def find_joined_opposite(self, standard_id: int) -> Optional[MaterialStandard]:
        """The joined (or unjoined) counterpart of standard_id, if the catalog has one."""
        self.require(standard_id)
        opposite = self.filter_join_opposite(standard_id).first()
        if opposite is None:
            logger.debug("No joined opposite for standard %s", standard_id)
        return opposite

    def alternatives_for_cut_standard(self, standard_id: int) -> "StandardCatalog":
        """Standards a cut piece may be re-labelled to: its joined opposite."""
        return self.filter_join_opposite(standard_id)

    def standards_with_same_brands(self, standard_id: int) -> "StandardCatalog":
        target = self.find_by_id(standard_id)
        if target is None or not target.brand_ids:
            return type(self)([])
        return self.filter_by(
            lambda s: s.id != standard_id and s.brand_key == target.brand_key
        )

    def standards_with_same_brands_joined(self, standard_id: int) -> "StandardCatalog":
        """Same-brand standards that are JOINED and not SCRAP."""
        return self.standards_with_same_brands(standard_id).filter_by(
            lambda s: s.is_joined and not s.has_property(MaterialProperties.SCRAP)
        )

    def find_angle_opposite(
        self,
        pile_standard_id: int,
        angular_standard_id: Optional[int] = None,
    ) -> Optional[MaterialStandard]:
        """
        The angular pile standard for a pile, or for a pile + angular element.

        With one input the candidate must be flagged ANGULAR; with two inputs it
        must be flagged ANGULAR and WITH_LOCK, and the brand set to match is the
        union of both inputs' brands. Apart from the required flags the
        candidate carries the same properties as the pile.
        """
        pile = self.require(pile_standard_id)
        brand_ids = set(pile.brand_ids)
        required = {MaterialProperties.ANGULAR.value}

        if angular_standard_id is not None:
            angular = self.require(angular_standard_id)
            brand_ids.update(angular.brand_ids)
            required.add(MaterialProperties.WITH_LOCK.value)

        brand_key = tuple(sorted(brand_ids))
        base_properties = set(pile.property_ids) - required

        for standard in self.items:
            if standard.id == pile_standard_id:
                continue
            if standard.brand_key != brand_key:
                continue
            properties = set(standard.property_ids)
            if not required.issubset(properties):
                continue
            if properties - required == base_properties:
                return standard
        return None

    # --- Data quality ---

    def group_by_brand_sets(self) -> dict[tuple[int, ...], list[MaterialStandard]]:
        groups: dict[tuple[int, ...], list[MaterialStandard]] = {}
        for standard in self.items:
            groups.setdefault(standard.brand_key, []).append(standard)
        return groups

    def find_duplicate_brand_groups(self) -> list[list[MaterialStandard]]:
        return [group for group in self.group_by_brand_sets().values() if len(group) > 1]
