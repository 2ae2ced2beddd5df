from peewee import IntegrityError
from collections import defaultdict
from contextlib import contextmanager
from typing import Optional
import threading

from .abstract import AbstractOrderedStore
from .database import DB, Collection, Item
from .rank import Rational
from ..errors import NotFound, Conflict


def _key(item) -> Rational:
    return Rational(item.rank_num, item.rank_den)


def _rank_fields(key: Rational) -> dict:
    return dict(rank_num=key.num, rank_den=key.den, rank=float(key))


class PeeweeStore(AbstractOrderedStore):
    """Ordered collections persisted in the items DB (see database.py).

    init_db() must be called before use. Uniqueness of keys is enforced by
    the unique indexes on Item; violations surface as errors.Conflict.
    """

    def __init__(self, logger=None):
        self._logger = logger
        self._locks = defaultdict(threading.RLock)
        self._guard = threading.Lock()

    @contextmanager
    def lock(self, collection, item_id=None):
        # SQLite locks the whole database on write, so item locks are widened
        # to the collection. The in-process lock covers other threads sharing
        # this store; IMMEDIATE covers other processes.
        with self._guard:
            l = self._locks[collection]
        with l:
            with DB.items.atomic(lock_type="IMMEDIATE"):
                yield

    def _collection(self, name, create=False) -> Optional[Collection]:
        if create:
            c, _ = Collection.get_or_create(name=name)
            return c
        return Collection.get_or_none(Collection.name == name)

    def _item_query(self, collection, item_id):
        return (Item.id == item_id) & (
            Item.collection == Collection.select(Collection.id).where(
                Collection.name == collection
            )
        )

    def read_key(self, collection, item_id) -> Rational:
        i = Item.get_or_none(self._item_query(collection, item_id))
        if i is None:
            raise NotFound(f"No item {item_id} in collection {collection}")
        return _key(i)

    def read_neighbor(
        self, collection, key: Rational, before: bool, exclude=None
    ) -> Optional[Rational]:
        c = self._collection(collection)
        if c is None:
            return None

        # Compare exactly by cross-multiplication; the float rank is only
        # used to pick the closest of the matching rows.
        cond = Item.collection == c
        if exclude is not None:
            cond = cond & (Item.id != exclude)
        if before:
            cond = cond & ((Item.rank_num * key.den) < (Item.rank_den * key.num))
            order = Item.rank.desc()
        else:
            cond = cond & ((Item.rank_num * key.den) > (Item.rank_den * key.num))
            order = Item.rank.asc()

        result = (
            Item.select(Item.rank_num, Item.rank_den)
            .where(cond)
            .order_by(order)
            .limit(1)
            .execute()
        )
        if len(result) == 0:
            return None
        return _key(result[0])

    def write_key(self, collection, item_id, key: Rational) -> None:
        try:
            with DB.items.atomic():
                updated = (
                    Item.update(**_rank_fields(key))
                    .where(self._item_query(collection, item_id))
                    .execute()
                )
        except IntegrityError as e:
            raise Conflict(f"Key {key} for item {item_id} is not unique") from e
        if updated == 0:
            raise NotFound(f"No item {item_id} in collection {collection}")

    def read_all_ordered(self, collection) -> list:
        return [(i, k) for (i, _, k) in self.list_items(collection)]

    def write_all(self, collection, pairs) -> None:
        try:
            with DB.items.atomic():
                for item_id, key in pairs:
                    updated = (
                        Item.update(**_rank_fields(key))
                        .where(self._item_query(collection, item_id))
                        .execute()
                    )
                    if updated == 0:
                        raise NotFound(
                            f"No item {item_id} in collection {collection}"
                        )
        except IntegrityError as e:
            raise Conflict(f"Bulk rewrite of {collection} collided") from e
        if self._logger is not None:
            self._logger.debug(f"Rewrote {len(pairs)} keys in {collection}")

    def create_item(self, collection, name: str, key: Rational):
        try:
            with DB.items.atomic():
                c = self._collection(collection, create=True)
                i = Item.create(collection=c, name=name, **_rank_fields(key))
        except IntegrityError as e:
            raise Conflict(f"Key {key} for new item {name} is not unique") from e
        return i.id

    def remove_item(self, collection, item_id) -> None:
        deleted = Item.delete().where(self._item_query(collection, item_id)).execute()
        if deleted == 0:
            raise NotFound(f"No item {item_id} in collection {collection}")

    def list_items(self, collection) -> list:
        c = self._collection(collection)
        if c is None:
            return []
        return [
            (i.id, i.name, _key(i))
            for i in Item.select().where(Item.collection == c).order_by(Item.rank.asc())
        ]

    def collections(self) -> list:
        return [c.name for c in Collection.select().order_by(Collection.name)]
