"""
Command line interface.

    methodfinder convert methods.csv methods_data.json
    methodfinder categories
    methodfinder recommend --select sem_level=Individual --select technology_access=Low
    methodfinder recommend --select sem_level=Individual,Community --json
"""

import argparse
import json
import sys
from typing import Dict, List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from methodfinder.config.manager import get_config_manager
from methodfinder.config.rules import RuleConfigError
from methodfinder.schemas.recommendation import TIER_LABELS, MatchResult, Tier, TieredRecommendations
from methodfinder.services.catalog_ingest import DEFAULT_OUTPUT_FILE, CatalogIngestError, convert_csv_file
from methodfinder.services.method_catalog import CatalogLoadError, MethodCatalog
from methodfinder.services.recommendation import create_recommendation_engine
from methodfinder.utils.logger import configure_logging

CONSOLE = Console()

TIER_STYLES = {
    Tier.BEST_FIT: "bold green",
    Tier.GOOD_ALTERNATIVE: "cyan",
    Tier.STRETCH_OPTION: "yellow",
    Tier.EXCLUDED: "red",
    Tier.UNLISTED: "dim",
}


# --- Argument parsing ---

def parse_selection(items: Optional[Sequence[str]]) -> Dict[str, List[str]]:
    """
    Parse repeated CATEGORY=VALUE[,VALUE...] arguments into a selection dict.

    Raises:
        ValueError: If an item has no "=" or no category
    """
    selection: Dict[str, List[str]] = {}
    for item in items or []:
        if "=" not in item:
            raise ValueError(f"Expected CATEGORY=VALUE, got '{item}'")
        category_id, _, raw_values = item.partition("=")
        category_id = category_id.strip()
        if not category_id:
            raise ValueError(f"Missing category in '{item}'")
        values = selection.setdefault(category_id, [])
        for value in raw_values.split(","):
            value = value.strip()
            if value and value not in values:
                values.append(value)
    return selection


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="methodfinder",
        description="Recommend research-measurement methods for a filter selection.",
    )
    parser.add_argument("--log-level", help="Logging level (default from config)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Convert a methods CSV into catalog JSON")
    convert.add_argument("input", help="Semicolon-separated CSV file")
    convert.add_argument("output", nargs="?", default=DEFAULT_OUTPUT_FILE, help="Output JSON file")

    categories = subparsers.add_parser("categories", help="List filterable categories")
    categories.add_argument("--catalog", help="Catalog file (JSON or YAML)")

    recommend = subparsers.add_parser("recommend", help="Tier methods for a selection")
    recommend.add_argument(
        "--select", "-s", action="append", default=[], metavar="CATEGORY=VALUE[,VALUE]",
        help="Filter values for a category; repeat for several categories",
    )
    recommend.add_argument("--catalog", help="Catalog file (JSON or YAML)")
    recommend.add_argument("--rules", help="Semantic rule file (YAML)")
    recommend.add_argument("--show-excluded", action="store_true", default=None, help="Also list vetoed methods")
    recommend.add_argument("--show-unlisted", action="store_true", default=None, help="Also list 0%% matches")
    recommend.add_argument("--json", action="store_true", help="Print JSON instead of tables")

    return parser


# --- Rendering ---

def _tier_table(tier: Tier, results: List[MatchResult]) -> Table:
    table = Table(title=f"{TIER_LABELS[tier]} ({len(results)})", title_style=TIER_STYLES[tier], expand=True)
    table.add_column("Method", style="bold")
    table.add_column("Match", justify="right")

    if tier == Tier.EXCLUDED:
        table.add_column("Reasons")
        for result in results:
            table.add_row(
                result.method.name,
                f"{result.match_percentage:.0%}",
                "\n".join(result.exclusion_reasons),
            )
        return table

    table.add_column("Matched categories")
    table.add_column("Cost")
    table.add_column("Link", overflow="fold")
    for result in results:
        table.add_row(
            result.method.name,
            f"{result.match_percentage:.0%}",
            ", ".join(sorted(result.matched_categories)) or "-",
            result.method.cost_tier or "-",
            result.method.link or "",
        )
    return table


def render_recommendations(
    tiers: TieredRecommendations,
    show_excluded: bool = False,
    show_unlisted: bool = False,
    console: Console = CONSOLE,
) -> None:
    shown = [Tier.BEST_FIT, Tier.GOOD_ALTERNATIVE, Tier.STRETCH_OPTION]
    if show_excluded:
        shown.append(Tier.EXCLUDED)
    if show_unlisted:
        shown.append(Tier.UNLISTED)

    if not tiers.suggestions:
        console.print(Panel("No methods match this selection.", style="yellow"))

    for tier in shown:
        results = tiers.bucket(tier)
        if results:
            console.print(_tier_table(tier, results))


# --- Commands ---

def cmd_convert(args: argparse.Namespace) -> int:
    try:
        report = convert_csv_file(args.input, args.output)
    except CatalogIngestError as e:
        CONSOLE.print(f"[bold red]Error:[/] {e}")
        return 1

    table = Table(title=f"Converted {args.input} -> {args.output}")
    table.add_column("Statistic")
    table.add_column("Count", justify="right")
    table.add_row("Categories", str(report.categories))
    table.add_row("Methods", str(report.methods))
    table.add_row("Methods with links", str(report.methods_with_links))
    table.add_row("Methods with custom descriptions", str(report.methods_with_custom_descriptions))
    CONSOLE.print(table)

    for warning in report.warnings:
        CONSOLE.print(f"[yellow]Warning:[/] {warning}")
    return 0


def cmd_categories(args: argparse.Namespace) -> int:
    path = args.catalog or get_config_manager().get_catalog_path() or MethodCatalog.DEFAULT_PATH
    try:
        catalog = MethodCatalog.from_file(path)
    except CatalogLoadError as e:
        CONSOLE.print(f"[bold red]Error:[/] {e}")
        return 1

    table = Table(title="Categories")
    table.add_column("Id", style="bold")
    table.add_column("Name")
    table.add_column("Options")
    table.add_column("Multi", justify="center")
    for category in catalog.categories:
        table.add_row(
            category.id,
            category.name,
            ", ".join(category.options),
            "yes" if category.multi_valued else "no",
        )
    CONSOLE.print(table)
    return 0


def cmd_recommend(args: argparse.Namespace) -> int:
    config = get_config_manager()

    try:
        selection = parse_selection(args.select)
    except ValueError as e:
        CONSOLE.print(f"[bold red]Error:[/] {e}")
        return 2

    try:
        engine = create_recommendation_engine(
            catalog_path=args.catalog or config.get_catalog_path(),
            rules_path=args.rules or config.get_rules_path(),
        )
    except (CatalogLoadError, RuleConfigError) as e:
        CONSOLE.print(f"[bold red]Error:[/] {e}")
        return 1

    tiers = engine.recommend(selection)

    show_excluded = args.show_excluded if args.show_excluded is not None else config.get("display.show_excluded", False)
    show_unlisted = args.show_unlisted if args.show_unlisted is not None else config.get("display.show_unlisted", False)

    if args.json:
        print(json.dumps(tiers.to_dict(include_unlisted=bool(show_unlisted)), indent=2))
        return 0

    render_recommendations(tiers, show_excluded=bool(show_excluded), show_unlisted=bool(show_unlisted))
    return 0


COMMANDS = {
    "convert": cmd_convert,
    "categories": cmd_categories,
    "recommend": cmd_recommend,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "convert":
        configure_logging(args.log_level)
    else:
        config = get_config_manager()
        configure_logging(args.log_level or config.get_log_level(), config.get("logging.file"))

    return COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
