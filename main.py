"""
Zakat Collection Dashboard — command-line pipeline.

Syncs the stored dashboard state from a Google Sheets source and prints
the dashboard summaries.

Usage:
    python main.py show [--category NAME] [--start YYYY-MM-DD] [--end YYYY-MM-DD]
    python main.py sync SPREADSHEET_ID
    python main.py watch SPREADSHEET_ID
    python main.py template [PATH]
    python main.py reset
"""

import argparse
import logging
import sys
import time
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from zakat_dashboard.config import ALL_CATEGORIES, STORAGE_FILE, SYNC_INTERVAL_SECONDS
from zakat_dashboard.dashboard import FilterSelection, get_category_breakdown, get_filtered_view
from zakat_dashboard.store import DashboardStore, JsonFileStorage
from zakat_dashboard.sync import AutoSync, SyncOrchestrator
from zakat_dashboard.template import template_filename, write_template

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_date(date_str: str) -> str:
    """Validate a YYYY-MM-DD string and return it unchanged."""
    return date.fromisoformat(date_str).isoformat()


def print_summary(store: DashboardStore, selection: FilterSelection) -> None:
    state = store.state
    view = get_filtered_view(state, selection)

    print("=" * 70)
    print(f"  {state.institution_name} — Tahun Anggaran {state.period_year}")
    print(f"  Source: {state.data_source}  |  Last update: {state.last_update}")
    print("=" * 70)

    print(f"\nFilter: {selection.category}  {selection.start_date} .. {selection.end_date}")
    print(f"  Target     : {view['target']:>20,}")
    print(f"  Terhimpun  : {view['collected']:>20,}  ({view['percentage']}%)")
    print(f"  Muzaki     : {view['muzaki']:>20,}")
    print(f"  Periode ini: {view['filtered_collected']:>20,}")

    breakdown = get_category_breakdown(state)
    if not breakdown.empty:
        print("\nCategories:")
        print(breakdown.drop(columns=["color"]).to_string(index=False))

    if view["monthly"]:
        print("\nMonthly trend:")
        for point in view["monthly"]:
            print(f"  {point.date}  {point.month:<10s} {point.amount:>18,}")

    print(f"\nDaily entries in window: {len(view['daily'])}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Zakat collection dashboard pipeline")
    parser.add_argument(
        "--storage",
        default=str(STORAGE_FILE),
        help=f"State file (default: {STORAGE_FILE})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Print dashboard summaries")
    show.add_argument("--category", "-c", default=ALL_CATEGORIES)
    show.add_argument("--start", "-S", type=parse_date)
    show.add_argument("--end", "-E", type=parse_date)

    sync = sub.add_parser("sync", help="Sync once from a spreadsheet")
    sync.add_argument("spreadsheet_id")

    watch = sub.add_parser("watch", help="Sync now and then every interval until Ctrl-C")
    watch.add_argument("spreadsheet_id")
    watch.add_argument("--interval", type=float, default=SYNC_INTERVAL_SECONDS)

    tmpl = sub.add_parser("template", help="Write the spreadsheet template (.xlsx)")
    tmpl.add_argument("path", nargs="?")
    tmpl.add_argument("--year", type=int, default=2025)

    sub.add_parser("reset", help="Clear stored state")

    args = parser.parse_args(argv)
    store = DashboardStore.open(JsonFileStorage(args.storage))

    if args.command == "show":
        selection = FilterSelection(category=args.category)
        if args.start:
            selection = FilterSelection(args.start, selection.end_date, args.category)
        if args.end:
            selection = FilterSelection(selection.start_date, args.end, args.category)
        print_summary(store, selection)

    elif args.command == "sync":
        orchestrator = SyncOrchestrator(store)
        if not orchestrator.sync(args.spreadsheet_id):
            print(f"Sync failed: {orchestrator.last_error}")
            return 1
        print_summary(store, FilterSelection())

    elif args.command == "watch":
        orchestrator = SyncOrchestrator(store)
        # Seed the id and source so AutoSync picks the spreadsheet up
        if not orchestrator.sync(args.spreadsheet_id):
            logger.warning("Initial sync failed: %s", orchestrator.last_error)
            return 1
        with AutoSync(store, orchestrator, interval=args.interval):
            try:
                while True:
                    time.sleep(args.interval)
                    state = store.state
                    print(
                        f"[{state.last_update}] collected {state.total_collected:,} "
                        f"of {state.total_target:,} ({orchestrator.status.value})"
                    )
            except KeyboardInterrupt:
                print("\nStopping auto-sync.")

    elif args.command == "template":
        path = args.path or template_filename(store.state.institution_name, args.year)
        print(f"Template saved to: {write_template(path, args.year)}")

    elif args.command == "reset":
        store.reset()
        print(f"Cleared {args.storage}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
