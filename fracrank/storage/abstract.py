from typing import Optional
from abc import ABC, abstractmethod

from .rank import Rational


class AbstractOrderedStore(ABC):
    """Base class for stores holding ordered collections of items.

    Each item in a collection carries exactly one Rational key, and keys are
    unique within a collection. Stores enforce that uniqueness (raising
    errors.Conflict) and serialize mutations through lock(); the ordering
    engine relies on both but implements neither.
    """

    @abstractmethod
    def lock(self, collection, item_id=None):
        """Context manager holding an exclusive lock on the item, or on the
        whole collection when item_id is None. Released on all exit paths."""
        raise NotImplementedError()

    @abstractmethod
    def read_key(self, collection, item_id) -> Rational:
        # Raises errors.NotFound if absent
        raise NotImplementedError()

    @abstractmethod
    def read_neighbor(
        self, collection, key: Rational, before: bool, exclude=None
    ) -> Optional[Rational]:
        """Returns the closest key strictly below (before=True) or above `key`,
        ignoring item `exclude`. None if there is no such key."""
        raise NotImplementedError()

    @abstractmethod
    def write_key(self, collection, item_id, key: Rational) -> None:
        # Raises errors.Conflict on duplicate keys, errors.NotFound if absent
        raise NotImplementedError()

    @abstractmethod
    def read_all_ordered(self, collection) -> list:
        """Returns [(item_id, key), ...] ordered by key ascending"""
        raise NotImplementedError()

    @abstractmethod
    def write_all(self, collection, pairs) -> None:
        """Atomically assigns every (item_id, key) pair. Either all writes are
        applied or none are (errors.Conflict)."""
        raise NotImplementedError()

    @abstractmethod
    def create_item(self, collection, name: str, key: Rational):
        """Creates an item with the given key and returns its ID"""
        raise NotImplementedError()

    @abstractmethod
    def remove_item(self, collection, item_id) -> None:
        raise NotImplementedError()

    @abstractmethod
    def list_items(self, collection) -> list:
        """Returns [(item_id, name, key), ...] ordered by key ascending"""
        raise NotImplementedError()
