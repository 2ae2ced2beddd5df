import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Optional

from .abstract import AbstractOrderedStore
from .rank import Rational
from ..errors import NotFound, Conflict


class MemoryStore(AbstractOrderedStore):
    """Keeps collections in process memory.

    Uniqueness is checked row by row, even within write_all, the same way
    a database applying a multi-row update with an immediate unique
    constraint would. A write_all that collides part way is discarded.
    """

    def __init__(self):
        self._items = defaultdict(dict)  # collection -> {id: [name, key]}
        self._locks = defaultdict(threading.RLock)
        self._guard = threading.Lock()
        self._next_id = 1

    @contextmanager
    def lock(self, collection, item_id=None):
        # Item locks are widened to the collection
        with self._guard:
            l = self._locks[collection]
        with l:
            yield

    def _get(self, collection, item_id):
        try:
            return self._items[collection][item_id]
        except KeyError:
            raise NotFound(f"No item {item_id} in collection {collection}")

    def _check_unique(self, rows, item_id, key):
        for other_id, (_, other_key) in rows.items():
            if other_id != item_id and other_key == key:
                raise Conflict(f"Key {key} already held by item {other_id}")

    def read_key(self, collection, item_id) -> Rational:
        with self.lock(collection):
            return self._get(collection, item_id)[1]

    def read_neighbor(
        self, collection, key: Rational, before: bool, exclude=None
    ) -> Optional[Rational]:
        result = None
        with self.lock(collection):
            for item_id, (_, k) in self._items[collection].items():
                if item_id == exclude:
                    continue
                if before and k < key and (result is None or k > result):
                    result = k
                elif not before and k > key and (result is None or k < result):
                    result = k
        return result

    def write_key(self, collection, item_id, key: Rational) -> None:
        with self.lock(collection):
            row = self._get(collection, item_id)
            self._check_unique(self._items[collection], item_id, key)
            row[1] = key

    def read_all_ordered(self, collection) -> list:
        return [(i, k) for (i, _, k) in self.list_items(collection)]

    def write_all(self, collection, pairs) -> None:
        with self.lock(collection):
            rows = dict(
                (i, list(row)) for (i, row) in self._items[collection].items()
            )
            for item_id, key in pairs:
                if item_id not in rows:
                    raise NotFound(f"No item {item_id} in collection {collection}")
                self._check_unique(rows, item_id, key)
                rows[item_id][1] = key
            self._items[collection] = rows

    def create_item(self, collection, name: str, key: Rational):
        with self.lock(collection):
            self._check_unique(self._items[collection], None, key)
            with self._guard:
                item_id = self._next_id
                self._next_id += 1
            self._items[collection][item_id] = [name, key]
            return item_id

    def remove_item(self, collection, item_id) -> None:
        with self.lock(collection):
            self._get(collection, item_id)
            del self._items[collection][item_id]

    def list_items(self, collection) -> list:
        with self.lock(collection):
            rows = [(i, name, k) for (i, (name, k)) in self._items[collection].items()]
        rows.sort(key=lambda r: r[2])
        return rows
