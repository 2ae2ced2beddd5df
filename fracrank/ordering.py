import logging
from typing import Optional

from .data import OrderingConfig
from .errors import Conflict, CeilingExceeded
from .storage.abstract import AbstractOrderedStore
from .storage.rank import Rational, ZERO, INFINITY, simplest_between


def renormalized_keys(items: list) -> list:
    """Compute dense replacement keys for [(item_id, key), ...].

    Items are ranked by key and given (2*rank - 1)/2, i.e. 1/2, 3/2, 5/2...
    The rewrite happens one row at a time under a unique constraint, so a
    target may not equal any x/2 key still held by an item. Those occupied
    numerators are skipped: for the j-th occupied numerator e_j (0-indexed,
    ascending) the simple sequence must jump by 2 once it reaches
    e_j - 2*j. Every target then differs from every current key, and
    targets stay strictly increasing.

    Returns [(item_id, new_key), ...] in ascending order.
    """
    ranked = sorted(items, key=lambda i: i[1])

    occupied = sorted(k.num for (_, k) in ranked if k.den == 2)
    adjustments = [e - 2 * j for (j, e) in enumerate(occupied)]

    result = []
    passed = 0
    for rank, (item_id, _) in enumerate(ranked, start=1):
        simple = 2 * rank - 1
        while passed < len(adjustments) and adjustments[passed] <= simple:
            passed += 1
        result.append((item_id, Rational(simple + 2 * passed, 2)))
    return result


class OrderingEngine:
    """Assigns fractional position keys to items in a store.

    Keys are picked as the simplest fraction between the neighbors of the
    target position, so inserts and moves touch exactly one item. When a key
    grows past the configured ceiling the whole collection is renormalized.

    The store serializes mutations via store.lock(); see storage/abstract.py.
    """

    def __init__(
        self,
        store: AbstractOrderedStore,
        config: Optional[OrderingConfig] = None,
        logger=None,
    ):
        self.store = store
        self.config = config if config is not None else OrderingConfig()
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def _check_ceiling(self, key: Rational):
        if key.num > self.config.ceiling or key.den > self.config.ceiling:
            raise CeilingExceeded(key, self.config.ceiling)

    def _bounds(self, collection, anchor_id, before: bool, exclude=None):
        # An absent anchor means the open end the item is placed towards:
        # "before nothing" is the end of the list, "after nothing" the start.
        if anchor_id is None:
            anchor = INFINITY if before else ZERO
        else:
            anchor = self.store.read_key(collection, anchor_id)

        neighbor = self.store.read_neighbor(collection, anchor, before, exclude)
        if before:
            return (neighbor if neighbor is not None else ZERO, anchor)
        else:
            return (anchor, neighbor if neighbor is not None else INFINITY)

    def _solve(self, collection, anchor_id, before: bool, exclude=None) -> Rational:
        low, high = self._bounds(collection, anchor_id, before, exclude)
        key = simplest_between(low, high, self.config.max_depth)
        self._logger.debug(f"{collection}: {low!r} < {key!r} < {high!r}")
        return key

    def _retrying(self, desc, fn):
        for attempt in range(self.config.retries + 1):
            try:
                return fn()
            except Conflict as e:
                if attempt == self.config.retries:
                    raise
                self._logger.warning(
                    f"{desc} conflicted ({e}); retrying ({attempt + 1}/{self.config.retries})"
                )

    def place(
        self, collection, item_id, anchor_id=None, before=True
    ) -> Optional[Rational]:
        """Move item_id next to anchor_id, before it if `before` else after.

        Without an anchor the item goes to the end (before=True) or to the
        start (before=False). Returns the item's new key, or None when the
        anchor is the item itself. Raises errors.NotFound if the item or
        anchor don't exist.
        """
        if anchor_id is not None and anchor_id == item_id:
            return None  # Moving next to itself is a no-op

        def attempt():
            with self.store.lock(collection, item_id):
                key = self._solve(collection, anchor_id, before, exclude=item_id)
                self.store.write_key(collection, item_id, key)
                try:
                    self._check_ceiling(key)
                except CeilingExceeded as e:
                    self._logger.info(f"{collection}: {e}")
                    self.renormalize(collection)
                    key = self.store.read_key(collection, item_id)
                return key

        return self._retrying(f"Placing {item_id} in {collection}", attempt)

    def insert(self, collection, name: str, anchor_id=None, before=True):
        """Create a new item positioned like place() would. Returns its ID."""

        def attempt():
            with self.store.lock(collection):
                if anchor_id is None and before:
                    key = self.end_key(collection)
                else:
                    key = self._solve(collection, anchor_id, before)
                item_id = self.store.create_item(collection, name, key)
                try:
                    self._check_ceiling(key)
                except CeilingExceeded as e:
                    self._logger.info(f"{collection}: {e}")
                    self.renormalize(collection)
                return item_id

        return self._retrying(f"Inserting {name} in {collection}", attempt)

    def end_key(self, collection) -> Rational:
        # Key for a new item appended after the current maximum
        return self._solve(collection, None, before=True)

    def append_at_end(self, collection, item_id) -> Rational:
        return self.place(collection, item_id, None, before=True)

    def renormalize(self, collection) -> int:
        """Reassign every key in the collection to 1/2, 3/2, 5/2... in the
        existing order. Returns the number of items rewritten."""

        def attempt():
            with self.store.lock(collection):
                items = self.store.read_all_ordered(collection)
                current = dict(items)
                changed = [
                    (i, k) for (i, k) in renormalized_keys(items) if current[i] != k
                ]
                self.store.write_all(collection, changed)
            self._logger.info(
                f"Renormalized {collection}: {len(changed)} of {len(items)} keys rewritten"
            )
            return len(changed)

        return self._retrying(f"Renormalizing {collection}", attempt)
