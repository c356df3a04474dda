"""
Generic ordered collection of identified items.

Every item exposes `id` and `uuid`. Filtering methods return a new collection
of the same concrete class, so a LotCollection filtered stays a LotCollection
and a StandardCatalog filtered stays a StandardCatalog.
"""

import json
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")
C = TypeVar("C", bound="Collection")


def get_path(item: Any, path: str, default: Any = None) -> Any:
    """Resolve a dotted attribute path ('material_type.id') against an object."""
    value = item
    for part in path.split("."):
        if value is None:
            return default
        value = getattr(value, part, None)
    return default if value is None else value


def _extraction_key(values: Iterable) -> str:
    return json.dumps(sorted(values))


class Collection(Generic[T]):
    """Ordered sequence of items looked up by id or uuid."""

    def __init__(self, items: Optional[Iterable[T]] = None):
        if isinstance(items, Collection):
            self.items: list[T] = list(items.get_all())
        else:
            self.items = list(items or [])

    # --- Basic access ---

    def add(self, item: T) -> None:
        self.items.append(item)

    def get_all(self) -> list[T]:
        return self.items

    def find_by_id(self, item_id) -> Optional[T]:
        return next((item for item in self.items if item.id == item_id), None)

    def find_by_uuid(self, uuid: str) -> Optional[T]:
        return next((item for item in self.items if item.uuid == uuid), None)

    def first(self) -> Optional[T]:
        return self.items[0] if self.items else None

    def count(self) -> int:
        return len(self.items)

    def is_empty(self) -> bool:
        return not self.items

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __contains__(self, uuid: str) -> bool:
        return self.find_by_uuid(uuid) is not None

    # --- Queries ---

    def find_by(self, predicate: Callable[[T], bool]) -> Optional[T]:
        return next((item for item in self.items if predicate(item)), None)

    def find_where(self, path: str, value) -> Optional[T]:
        return self.find_by(lambda item: get_path(item, path) == value)

    def filter_by(self: C, predicate: Callable[[T], bool]) -> C:
        return type(self)([item for item in self.items if predicate(item)])

    def filter_where(self: C, path: str, value) -> C:
        return self.filter_by(lambda item: get_path(item, path) == value)

    def pluck(self, path: str) -> list:
        return [get_path(item, path) for item in self.items]

    # --- Slot updates (items themselves are immutable) ---

    def remove_by_uuid(self, uuid: str) -> bool:
        for idx, item in enumerate(self.items):
            if item.uuid == uuid:
                del self.items[idx]
                return True
        return False

    def remove_by_id(self, item_id) -> bool:
        for idx, item in enumerate(self.items):
            if item.id == item_id:
                del self.items[idx]
                return True
        return False

    def replace_by_uuid(self, uuid: str, new_item: T) -> bool:
        """Put new_item in the slot currently held by uuid. False if uuid is absent."""
        for idx, item in enumerate(self.items):
            if item.uuid == uuid:
                self.items[idx] = new_item
                return True
        return False

    def copy(self: C) -> C:
        """Shallow copy — new slot list, same item references."""
        return type(self)(list(self.items))

    # --- Similarity search ---

    def find_similar_by_extractions(
        self,
        target: T,
        extractors: list[Callable[[T], list]],
        additional_filter: Optional[Callable[[T], bool]] = None,
    ) -> list[T]:
        """
        Items (other than target) whose every extracted value list matches
        target's, order-independently.
        """
        target_keys = [_extraction_key(fn(target)) for fn in extractors]
        matches = []
        for item in self.items:
            if item is target:
                continue
            keys = [_extraction_key(fn(item)) for fn in extractors]
            if keys != target_keys:
                continue
            if additional_filter and not additional_filter(item):
                continue
            matches.append(item)
        return matches

    def find_opposite_by_boolean(
        self: C,
        target_id,
        extractors: list[Callable[[T], list]],
        flag: Callable[[T], bool],
    ) -> C:
        """Items similar to target_id on every extractor but with flag() inverted."""
        target = self.find_by_id(target_id)
        if target is None:
            return type(self)([])
        opposite = not flag(target)
        return type(self)(self.find_similar_by_extractions(
            target, extractors, lambda candidate: flag(candidate) == opposite,
        ))
