# Command line client for ordered collections kept in a local items DB.

import argparse
import logging
import sys

from .data import load_config
from .errors import OrderingError, StorageError
from .ordering import OrderingEngine
from .storage.database import init_db
from .storage.queries import PeeweeStore
from .storage.rank import Rational, INFINITY, simplest_between


def _bound(s: str) -> Rational:
    if s.lower() in ("inf", "infinity"):
        return INFINITY
    return Rational.parse(s)


def _add_position_args(p):
    g = p.add_mutually_exclusive_group()
    g.add_argument("--before", type=int, metavar="ID", help="Place before item ID")
    g.add_argument("--after", type=int, metavar="ID", help="Place after item ID")
    g.add_argument(
        "--start", action="store_true", help="Place at the start (default: end)"
    )


def _position(args):
    if args.before is not None:
        return (args.before, True)
    if args.after is not None:
        return (args.after, False)
    return (None, not args.start)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="fracrank", description="Edit ordered collections of items"
    )
    parser.add_argument(
        "--db", default="fracrank.db", help="Path to the items DB (default: %(default)s)"
    )
    parser.add_argument("--config", help="YAML file overriding ordering settings")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("add", help="Create an item")
    p.add_argument("collection")
    p.add_argument("name")
    _add_position_args(p)

    p = sub.add_parser("mv", help="Move an item")
    p.add_argument("collection")
    p.add_argument("item", type=int)
    _add_position_args(p)

    p = sub.add_parser("rm", help="Remove an item")
    p.add_argument("collection")
    p.add_argument("item", type=int)

    p = sub.add_parser("ls", help="List items, or collections if none given")
    p.add_argument("collection", nargs="?")

    p = sub.add_parser("renormalize", help="Reassign all keys of a collection")
    p.add_argument("collection")

    p = sub.add_parser("between", help="Print the simplest fraction between two bounds")
    p.add_argument("low", type=_bound)
    p.add_argument("high", type=_bound)
    return parser


def run(args, out, logger) -> None:
    config = load_config(args.config)
    if args.cmd == "between":
        out.write(f"{simplest_between(args.low, args.high, config.max_depth)}\n")
        return

    init_db(args.db, logger)
    store = PeeweeStore(logger)
    engine = OrderingEngine(store, config, logger)

    if args.cmd == "add":
        anchor, before = _position(args)
        item_id = engine.insert(args.collection, args.name, anchor, before)
        out.write(f"{item_id}\t{store.read_key(args.collection, item_id)}\n")
    elif args.cmd == "mv":
        anchor, before = _position(args)
        engine.place(args.collection, args.item, anchor, before)
        out.write(f"{args.item}\t{store.read_key(args.collection, args.item)}\n")
    elif args.cmd == "rm":
        store.remove_item(args.collection, args.item)
    elif args.cmd == "ls":
        if args.collection is None:
            for name in store.collections():
                out.write(f"{name}\n")
        else:
            for (item_id, name, key) in store.list_items(args.collection):
                out.write(f"{item_id}\t{key}\t{name}\n")
    elif args.cmd == "renormalize":
        n = engine.renormalize(args.collection)
        out.write(f"{n} keys rewritten\n")


def main(argv=None, out=sys.stdout) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    logger = logging.getLogger("fracrank")
    try:
        run(args, out, logger)
    except (OrderingError, StorageError, KeyError, ValueError) as e:
        # KeyError str() quotes its message
        logger.error(e.args[0] if e.args else repr(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
