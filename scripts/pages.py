#!/usr/bin/env python3
"""Manage page definitions directly in the configured store.

  python scripts/pages.py list
  python scripts/pages.py add "Inventory" 5
  python scripts/pages.py update 1700000000000 --title Stock --columns 6
  python scripts/pages.py delete 1700000000000

Deleting a page does not delete the rows saved under it.
"""
from __future__ import annotations

import argparse
from typing import List, Optional

from tablekv.core.errors import TableKVError
from tablekv.infra.kv_store import KVStore, open_store
from tablekv.services.config_service import ConfigService
from tablekv.settings import load_settings


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("list")

    add = sub.add_parser("add")
    add.add_argument("title")
    add.add_argument("columns", type=int)
    add.add_argument("--id", dest="page_id", default=None)

    upd = sub.add_parser("update")
    upd.add_argument("page_id")
    upd.add_argument("--title", default=None)
    upd.add_argument("--columns", type=int, default=None)

    rm = sub.add_parser("delete")
    rm.add_argument("page_id")
    return p


def run(argv: Optional[List[str]], store: KVStore) -> dict:
    args = build_parser().parse_args(argv)
    configs = ConfigService(store)
    if args.command == "add":
        return configs.add_page(args.title, args.columns, page_id=args.page_id)
    if args.command == "update":
        return configs.update_page(args.page_id, title=args.title, columns=args.columns)
    if args.command == "delete":
        return configs.delete_page(args.page_id)
    return configs.get()


def main(argv: Optional[List[str]] = None) -> None:
    store = open_store(load_settings())
    if store is None:
        raise SystemExit("TABLEKV_STORE=none: no store configured")
    try:
        config = run(argv, store)
    except TableKVError as e:
        raise SystemExit(e.message)
    for page in config.get("pages") or []:
        print(f"{page.get('id')}\t{page.get('columns')}\t{page.get('title')}")


if __name__ == "__main__":
    main()
