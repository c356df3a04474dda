"""
In-memory stores shared by the HTTP layer: the seeded catalog and the live sessions.

Both are process-wide singletons handed to routes through Depends(), so tests
can swap them with app.dependency_overrides.
"""

from functools import lru_cache

from .adapters import load_catalog
from .catalog.standards import StandardCatalog
from .config import settings
from .session import SessionRegistry

_registry = SessionRegistry()


@lru_cache(maxsize=1)
def get_catalog() -> StandardCatalog:
    """Catalog from CATALOG_PATH, or the bundled seed catalog. Loaded once."""
    return load_catalog(settings.CATALOG_PATH or None)


def get_registry() -> SessionRegistry:
    return _registry
