"""CLI entry point for ChopChop."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime, timezone

from dotenv import load_dotenv

from . import session as actions
from .config import AppConfig, load_config
from .db import InventoryDB
from .extraction import GroceryExtractor
from .materialize import utcnow
from .models import DietaryFilter, GroceryItem, Urgency
from .ocr import OcrExtractor
from .pipeline import ReceiptScanner
from .proxy_client import ProxyClient
from .recipes import RecipeSuggester
from .session import Session


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="chopchop",
        description="ChopChop — scan grocery receipts, track your fridge, get recipe ideas",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the configuration file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # serve
    serve_parser = sub.add_parser("serve", help="Run the generation proxy")
    serve_parser.add_argument("--host", type=str, default=None)
    serve_parser.add_argument("--port", type=int, default=None)

    # scan
    scan_parser = sub.add_parser("scan", help="Scan a receipt image into the fridge")
    scan_parser.add_argument("image", type=str, help="Receipt image file")
    scan_parser.add_argument("--json", action="store_true", help="Output JSON")

    # list
    list_parser = sub.add_parser("list", help="Show fridge items, soonest expiry first")
    list_parser.add_argument("--search", type=str, default="", help="Filter by name")
    list_parser.add_argument("--json", action="store_true", help="Output JSON")

    # add
    add_parser = sub.add_parser("add", help="Add an item by hand")
    add_parser.add_argument("name", type=str)
    when = add_parser.add_mutually_exclusive_group(required=True)
    when.add_argument("--days", type=int, help="Days until it perishes")
    when.add_argument("--expires", type=_parse_date, help="Expiry date (YYYY-MM-DD)")

    # set-expiry
    edit_parser = sub.add_parser("set-expiry", help="Change an item's expiry date")
    edit_parser.add_argument("id", type=int)
    edit_parser.add_argument("expires", type=_parse_date, help="YYYY-MM-DD")

    # delete
    delete_parser = sub.add_parser("delete", help="Remove an item")
    delete_parser.add_argument("id", type=int)

    # clear-expired
    sub.add_parser("clear-expired", help="Remove the expired items currently listed")

    # recipes
    recipes_parser = sub.add_parser("recipes", help="Suggest recipes from the fridge")
    recipes_parser.add_argument(
        "--filter",
        "-f",
        dest="filters",
        type=DietaryFilter.parse,
        action="append",
        default=[],
        help="Dietary filter: " + ", ".join(f.value for f in DietaryFilter),
    )
    recipes_parser.add_argument("--json", action="store_true", help="Output JSON")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    load_dotenv()
    config = load_config(args.config)

    if args.command == "serve":
        from .server import serve

        serve(config, host=args.host, port=args.port)
        return

    db = InventoryDB(config.database.path)
    try:
        state = actions.refresh(Session(), db)
        if not state.error:
            state = _dispatch(config, db, state, args)
    finally:
        db.close()

    if state.error:
        print(f"Error: {state.error}", file=sys.stderr)
        sys.exit(1)
    if state.message:
        print(state.message)


def _dispatch(config: AppConfig, db: InventoryDB, state: Session, args) -> Session:
    match args.command:
        case "scan":
            return asyncio.run(_cmd_scan(config, db, state, args))
        case "list":
            return _cmd_list(state, args)
        case "add":
            return actions.add_item(
                state, db, args.name,
                expires_at=args.expires, perish_in_days=args.days,
            )
        case "set-expiry":
            state = actions.begin_edit(state, args.id)
            return actions.save_edit(state, db, args.expires)
        case "delete":
            return actions.delete_item(state, db, args.id)
        case "clear-expired":
            return actions.clear_expired(state, db)
        case "recipes":
            return asyncio.run(_cmd_recipes(config, state, args))
    return state


def _parse_date(value: str) -> datetime:
    """YYYY-MM-DD as midnight UTC."""
    try:
        day = date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}") from None
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def _proxy_client(config: AppConfig) -> ProxyClient:
    return ProxyClient(config.proxy.url, timeout=config.proxy.timeout)


_URGENCY_MARKS = {
    Urgency.EXPIRED: "🔴",
    Urgency.USE_NOW: "🟠",
    Urgency.USE_SOON: "🟡",
    Urgency.FRESH: "🟢",
    Urgency.UNKNOWN: "⚪",
}


def _describe_expiry(item: GroceryItem, now: datetime) -> str:
    mark = _URGENCY_MARKS[item.urgency(now)]
    if item.expires_at is None:
        return f"{mark} No expiry set"
    days = item.days_left(now)
    left = f"{days} day{'' if days == 1 else 's'} left" if days >= 0 else "Expired"
    return f"{mark} {item.expires_at.date().isoformat()}  ({left})"


def _item_json(item: GroceryItem, now: datetime) -> dict:
    return {
        "id": item.id,
        "item_name": item.name,
        "added_on": item.added_at.isoformat() if item.added_at else None,
        "expires_on": item.expires_at.isoformat() if item.expires_at else None,
        "urgency": item.urgency(now).value,
    }


async def _cmd_scan(config: AppConfig, db: InventoryDB, state: Session, args) -> Session:
    ocr = OcrExtractor(lang=config.ocr.lang, tesseract_cmd=config.ocr.tesseract_cmd)
    scanner = ReceiptScanner(ocr, GroceryExtractor(_proxy_client(config)), db)

    def show_progress(fraction: float) -> None:
        print(f"\r🧾 Scanning receipt… {round(fraction * 100)}%", end="", file=sys.stderr)

    state = await actions.scan_receipt(
        state,
        scanner,
        args.image,
        show_progress,
        ocr_timeout=config.ocr.timeout or None,
    )
    print(file=sys.stderr)

    if args.json:
        data = [
            {"item": e.item_label, "perish_in_days": e.perish_in_days}
            for e in state.scanned
        ]
        print(json.dumps(data, ensure_ascii=False, indent=2))
    elif state.scanned:
        print("Cleaned grocery items:")
        for e in state.scanned:
            print(f"  {e.item_label}  (perish in {e.perish_in_days} days)")
    return state


def _cmd_list(state: Session, args) -> Session:
    state = actions.set_search(state, args.search)
    items = state.visible_items()
    now = utcnow()

    if args.json:
        data = [_item_json(i, now) for i in items]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return state

    if not items:
        print("No items found.")
        return state
    for item in items:
        print(f"  [{item.id:>4}] {item.name:<24} {_describe_expiry(item, now)}")
    return state


async def _cmd_recipes(config: AppConfig, state: Session, args) -> Session:
    for dietary_filter in args.filters:
        if dietary_filter not in state.filters:
            state = actions.toggle_filter(state, dietary_filter)

    suggester = RecipeSuggester(_proxy_client(config), count=config.recipes.count)
    print("🍳 Generating recipes…", file=sys.stderr)
    state = await actions.generate_recipes(state, suggester)

    if args.json:
        print(json.dumps(list(state.recipes), ensure_ascii=False, indent=2))
    else:
        print("\n\n".join(state.recipes))
    return state
