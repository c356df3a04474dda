"""
Transformation registry — maps transformation kinds to transformation classes.

Server codes without a registered class (wedge, beam, embed, ...) are valid
TransformationKind values but cannot be run by a session yet.
"""

from typing import Union

from ..catalog.standards import StandardCatalog
from ..engine.cut import CutEngine
from ..enums import TransformationKind
from .angle import AngleTransformation
from .base import BaseTransformation
from .cut import CutTransformation
from .join import JoinTransformation

TRANSFORMATION_REGISTRY: dict[TransformationKind, type] = {
    TransformationKind.CUT: CutTransformation,
    TransformationKind.JOIN: JoinTransformation,
    TransformationKind.ANGLE: AngleTransformation,
}


def get_transformation(kind: Union[TransformationKind, int], catalog: StandardCatalog,
                       cut_engine: CutEngine = None) -> BaseTransformation:
    """Returns an instance of the transformation for a kind, or raises ValueError."""
    kind = TransformationKind(kind)
    if kind not in TRANSFORMATION_REGISTRY:
        raise ValueError(
            f"No transformation registered for kind: {kind.name}. "
            f"Available: {[k.name for k in TRANSFORMATION_REGISTRY]}"
        )
    return TRANSFORMATION_REGISTRY[kind](catalog, cut_engine)


def has_transformation(kind: Union[TransformationKind, int]) -> bool:
    try:
        return TransformationKind(kind) in TRANSFORMATION_REGISTRY
    except ValueError:
        return False


def list_transformations() -> list[TransformationKind]:
    return list(TRANSFORMATION_REGISTRY.keys())
