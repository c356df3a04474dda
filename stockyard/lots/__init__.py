from .collection import LotCollection
from .lot import Lot

__all__ = ["Lot", "LotCollection"]
