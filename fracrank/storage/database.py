from peewee import (
    Model,
    SqliteDatabase,
    CharField,
    DateTimeField,
    IntegerField,
    ForeignKeyField,
    FloatField,
    Check,
)
import datetime
import logging
import os

from ..errors import StorageError


logging.getLogger("peewee").setLevel(logging.INFO)


# Defer initialization
class DB:
    # Adding foreign_keys pragma is necessary for ON DELETE behavior
    items = SqliteDatabase(None, pragmas={"foreign_keys": 1})


CURRENT_SCHEMA_VERSION = "0.0.1"


class StorageDetails(Model):
    schemaVersion = CharField(unique=True)

    class Meta:
        database = DB.items


class Collection(Model):
    name = CharField(unique=True)
    created = DateTimeField(default=datetime.datetime.now)

    class Meta:
        database = DB.items


class Item(Model):
    collection = ForeignKeyField(Collection, backref="items", on_delete="CASCADE")
    name = CharField(default="")
    created = DateTimeField(default=datetime.datetime.now)

    # The position key is the reduced fraction rank_num/rank_den. Ordering
    # queries use `rank` (the float quotient) as a scalar sort key; the
    # ceiling enforced by the ordering engine keeps it collision free, and
    # the unique index below makes any collision a write error.
    rank_num = IntegerField(constraints=[Check("rank_num > 0")])
    rank_den = IntegerField(constraints=[Check("rank_den > 0")])
    rank = FloatField()

    class Meta:
        database = DB.items
        indexes = (
            (("collection", "rank_num", "rank_den"), True),
            (("collection", "rank"), True),
        )


def file_exists(path: str) -> bool:
    try:
        return os.stat(path).st_size > 0
    except OSError:
        return False


MODELS = [StorageDetails, Collection, Item]


def populate():
    DB.items.create_tables(MODELS)
    StorageDetails.create(schemaVersion=CURRENT_SCHEMA_VERSION)


def init_db(db_path, logger=None):
    db = DB.items
    needs_init = not file_exists(db_path)
    db.init(None)
    db.init(db_path)
    db.connect(reuse_if_open=True)

    if needs_init:
        if logger is not None:
            logger.debug("Initializing items DB")
        populate()
    else:
        try:
            details = StorageDetails.select().limit(1).execute()[0]
        except Exception as e:
            raise StorageError("Failed to fetch storage schema details!") from e

        if details.schemaVersion != CURRENT_SCHEMA_VERSION:
            raise StorageError(
                "DB schema version is not current: " + details.schemaVersion
            )
        if logger is not None:
            logger.debug("Storage schema version: " + details.schemaVersion)

    return db
