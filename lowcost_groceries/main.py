from __future__ import annotations

import argparse
import asyncio
import logging

from .api_client import ApiError, GroceryApiClient
from .app import ShoppingAssistant
from .config import OPTIONAL_KEYS, REQUIRED_KEYS, Config
from .models import JobStatus, Phase
from .report import cart_text, results_text, view_text, write_json
from .results import build_results
from .suggestions import offered_names
from .view import View

__version__ = "0.1.0"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="lowcost-groceries")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = p.add_subparsers(dest="cmd", required=False)

    p_config = sub.add_parser("config", help="Config commands")
    sub_config = p_config.add_subparsers(dest="config_cmd", required=True)
    sub_config.add_parser("keys", help="List environment variables")
    sub_config.add_parser("check", help="Validate environment config")

    p_clarify = sub.add_parser("clarify", help="Ask for AI name suggestions for one item")
    p_clarify.add_argument("item", help="Item text (e.g. 'oat milk')")
    p_clarify.add_argument("--context", nargs="*", default=[], help="Items already in the cart")

    p_status = sub.add_parser("status", help="Fetch the status or results of a pricing job")
    p_status.add_argument("job_id")

    p_search = sub.add_parser("search", help="Build a cart and compare prices end to end")
    p_search.add_argument("items", nargs="+", help="Grocery items")
    p_search.add_argument("--zip", required=True, help="5-digit zip code")
    p_search.add_argument("--nearby", action="store_true", help="Prioritize nearby stores")
    p_search.add_argument("--manual", action="store_true", help="Add items as typed, skip AI suggestions")
    p_search.add_argument("--json", default=None, help="Also write results as JSON to this path")

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.version:
        print(__version__)
        return 0

    if args.cmd is None:
        p.print_help()
        return 0

    if args.cmd == "config":
        if args.config_cmd == "keys":
            for k in REQUIRED_KEYS:
                print(k)
            for k, default in OPTIONAL_KEYS.items():
                print(f"{k} (default {default})")
            return 0

        if args.config_cmd == "check":
            cfg = Config.load_from_env()
            print(f"OK: api={cfg.api_url} timeout={cfg.timeout_s}s poll={cfg.poll_interval_s}s")
            return 0

    cfg = Config.load_from_env()

    if args.cmd == "clarify":
        api = GroceryApiClient(api_url=cfg.api_url, timeout_s=cfg.timeout_s)
        try:
            result = api.clarify(args.item, args.context)
        except ApiError as exc:
            print(f"ERROR: {exc}")
            return 1
        names = offered_names(result)
        if not names:
            print("No suggestions.")
            return 1
        for i, name in enumerate(names):
            print(f"{'*' if i == 0 else '-'} {name}")
        return 0

    if args.cmd == "status":
        api = GroceryApiClient(api_url=cfg.api_url, timeout_s=cfg.timeout_s)
        try:
            job = api.get_results(args.job_id)
        except ApiError as exc:
            print(f"ERROR: {exc}")
            return 1
        if job.status is JobStatus.COMPLETE:
            print(results_text(build_results(list(job.results), job)))
            return 0
        status = job.status.value if job.status is not None else "unknown"
        if job.status is JobStatus.QUEUED:
            status += f" (position: {job.queue_position if job.queue_position is not None else '?'})"
        print(f"{args.job_id}: {status}")
        return 0 if job.status is not JobStatus.FAILED else 1

    if args.cmd == "search":
        return asyncio.run(_run_search(args, cfg))

    raise RuntimeError("unreachable")


async def _run_search(args, cfg: Config) -> int:
    printed: list[str] = []

    def on_change(view: View) -> None:
        if view.phase != Phase.POLLING:
            return
        text = view_text(view)
        if not printed or printed[-1] != text:
            printed.append(text)
            print(f"  {text}")

    app = ShoppingAssistant.from_config(cfg, on_change=on_change)

    def flush_notices() -> None:
        for notice in app.drain_notices():
            print(f"  ! {notice.message}")

    if args.manual:
        for item in args.items:
            app.add_item(item)
    else:
        print(f"Getting AI suggestions for {len(args.items)} items...")
        for item in args.items:
            if app.submit_item_text(item) is None:
                print(f"  SKIP: {item!r} is too short")
        await app.wait_for_suggestions()

        for card in app.view().pending:
            if card.options:
                choice = card.options[0].name
                app.select_suggestion(card.id, choice)
                print(f"  {card.original_text} → {choice}")
            else:
                app.add_manual(card.id)
                print(f"  {card.original_text} → (as typed)")
    flush_notices()

    print("\n" + cart_text(app.view()))
    if not app.continue_to_location():
        print("Nothing to search for.")
        return 1

    zip_code = app.set_zip(args.zip)
    if zip_code != args.zip.strip():
        print(f"Using zip code {zip_code}")
    app.set_prioritize_nearby(args.nearby)

    print("\nFinding prices...")
    job = await app.find_prices()
    flush_notices()
    if job is None:
        return 1

    await app.wait_for_results()
    flush_notices()

    view = app.view()
    if view.phase != Phase.RESULTS or view.results is None:
        return 1

    print("\n" + results_text(view.results))
    if args.json:
        path = write_json(view.results, args.json)
        print(f"\nResults written to {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
