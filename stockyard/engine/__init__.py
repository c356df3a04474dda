"""
Transformation engine — pure computations over lots.

CutEngine splits one lot and reverses splits; JoinEngine merges lots and
resolves composite standards against the catalog.
"""

from .cut import EPSILON, CutEngine, CutResult, UndoResult
from .join import JoinEngine

__all__ = ["EPSILON", "CutEngine", "CutResult", "JoinEngine", "UndoResult"]
