"""
Command-line interface for nonprofit Tier 1 vetting.

Usage:
    nonprofit-vetting search "food bank" --state CA --city Oakland
    nonprofit-vetting profile 95-3135649
    nonprofit-vetting tier1 95-3135649
    nonprofit-vetting red-flags 95-3135649 --json
    nonprofit-vetting sectors

Configuration comes from the environment (and a .env file). Invalid
thresholds abort before any command runs.
"""

import argparse
import json
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .collectors.propublica import ProPublicaCollector
from .config import load_config
from .schemas.vetting import (
    CheckResult,
    OrganizationProfile,
    Recommendation,
    RedFlagResult,
    RedFlagSeverity,
    SearchNonprofitResponse,
    Tier1Result,
    ToolResponse,
)
from .scorers.sector_thresholds import get_sector_name, list_sectors
from .scorers.thresholds import ThresholdValidationError
from .services.vetting_service import VettingService
from .utils.logger import configure_global_logging, get_logger

console = Console()

RESULT_STYLE = {
    CheckResult.PASS: "green",
    CheckResult.REVIEW: "yellow",
    CheckResult.FAIL: "red",
}

RECOMMENDATION_STYLE = {
    Recommendation.PASS: "green",
    Recommendation.REVIEW: "yellow",
    Recommendation.REJECT: "red",
}

SEVERITY_STYLE = {
    RedFlagSeverity.HIGH: "red",
    RedFlagSeverity.MEDIUM: "yellow",
    RedFlagSeverity.LOW: "dim",
}


def _money(value: Optional[float]) -> str:
    return "-" if value is None else f"${value:,.0f}"


def print_search(data: SearchNonprofitResponse):
    table = Table(title=f"Search Results ({data.total})")
    table.add_column("EIN", style="cyan")
    table.add_column("Name")
    table.add_column("City")
    table.add_column("State")
    table.add_column("NTEE")
    for result in data.results:
        table.add_row(result.ein, escape(result.name), result.city, result.state, result.ntee_code)
    console.print(table)


def print_profile(profile: OrganizationProfile):
    table = Table(title=escape(f"{profile.name} ({profile.ein})"), show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    location = ", ".join(p for p in (profile.address.city, profile.address.state) if p)
    table.add_row("Location", escape(location) or "-")
    table.add_row("Subsection", profile.subsection or "unknown")
    table.add_row("501(c)(3)", "yes" if profile.is_501c3 else "no")
    table.add_row("NTEE code", profile.ntee_code or "-")
    table.add_row("Sector", get_sector_name(profile.ntee_code) or "-")
    table.add_row("Ruling date", profile.ruling_date or "-")
    table.add_row("Years operating", "unknown" if profile.years_operating is None else str(profile.years_operating))
    table.add_row("Filings on record", str(profile.filing_count))

    latest = profile.latest_990
    if latest is not None:
        table.add_row("Latest 990", f"{latest.tax_period} ({latest.form_type})")
        table.add_row("Total revenue", _money(latest.total_revenue))
        table.add_row("Total expenses", _money(latest.total_expenses))
        table.add_row("Total assets", _money(latest.total_assets))
        ratio = "-" if latest.expense_ratio is None else f"{latest.expense_ratio * 100:.1f}%"
        table.add_row("Expense-to-revenue", ratio)
    console.print(table)


def print_tier1(result: Tier1Result):
    style = RECOMMENDATION_STYLE[result.recommendation]
    console.print(
        Panel(
            escape(result.summary.justification),
            title=f"[bold {style}]{result.summary.headline}[/bold {style}] - {result.score}/100",
            subtitle=escape(f"{result.name} ({result.ein})"),
            border_style=style,
        )
    )

    table = Table(title="Tier 1 Checks")
    table.add_column("Check")
    table.add_column("Result")
    table.add_column("Weight", justify="right")
    table.add_column("Detail")
    for check in result.checks:
        check_style = RESULT_STYLE[check.result]
        table.add_row(
            check.name,
            f"[{check_style}]{check.result.value}[/{check_style}]",
            str(check.weight),
            escape(check.detail),
        )
    console.print(table)

    if result.red_flags:
        print_flags(result.red_flags)

    console.print("[bold]Key factors[/bold]")
    for factor in result.summary.key_factors:
        console.print(f"  {factor}", markup=False)
    console.print("[bold]Next steps[/bold]")
    for step in result.summary.next_steps:
        console.print(f"  • {step}")


def print_flags(flags):
    table = Table(title="Red Flags")
    table.add_column("Severity")
    table.add_column("Type")
    table.add_column("Detail")
    for flag in flags:
        flag_style = SEVERITY_STYLE[flag.severity]
        table.add_row(f"[{flag_style}]{flag.severity.value}[/{flag_style}]", flag.type.value, escape(flag.detail))
    console.print(table)


def print_red_flags(result: RedFlagResult):
    console.print(f"[bold]{escape(result.name)}[/bold] ({result.ein})")
    if result.clean:
        console.print("[green]No red flags detected[/green]")
    else:
        print_flags(result.flags)


def print_sectors():
    table = Table(title="Sector Threshold Overrides")
    table.add_column("NTEE", style="cyan")
    table.add_column("Sector")
    table.add_column("Overrides")
    for sector in list_sectors():
        overrides = "\n".join(f"{k} = {v:g}" for k, v in sector.overrides.items())
        table.add_row(sector.code, escape(sector.description), overrides)
    console.print(table)


def emit(response: ToolResponse, as_json: bool, printer) -> int:
    """Print a response envelope; return the process exit code."""
    if as_json:
        print(json.dumps(response.model_dump(mode="json"), indent=2))
    elif not response.success:
        console.print(f"[red]Error:[/red] {escape(response.error or 'unknown error')}")
    else:
        printer(response.data)
        console.print(f"[dim]{response.attribution}[/dim]")
    return 0 if response.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nonprofit-vetting",
        description="Tier 1 nonprofit vetting using ProPublica Nonprofit Explorer data",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", help="Also write DEBUG logs to logs/<LOG_FILE>")
    subparsers = parser.add_subparsers(dest="command", required=True)

    output = argparse.ArgumentParser(add_help=False)
    output.add_argument("--json", action="store_true", help="Print the raw response envelope as JSON")

    search = subparsers.add_parser("search", parents=[output], help="Search nonprofits by name or keyword")
    search.add_argument("query", help="Name or keywords")
    search.add_argument("--state", help="Two-letter state code")
    search.add_argument("--city", help="City (filtered client-side)")

    for name, help_text in (
        ("profile", "Show the normalized organization profile"),
        ("tier1", "Run the Tier 1 checks"),
        ("red-flags", "Run red flag detection only"),
    ):
        sub = subparsers.add_parser(name, parents=[output], help=help_text)
        sub.add_argument("ein", help="EIN (XX-XXXXXXX or 9 digits)")

    subparsers.add_parser("sectors", parents=[output], help="List sector-specific threshold overrides")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_global_logging(args.log_level)
    logger = get_logger(log_level=args.log_level, log_file=args.log_file)

    try:
        config = load_config()
    except ThresholdValidationError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return 1

    if args.command == "sectors":
        if args.json:
            sectors = [
                {"code": s.code, "description": s.description, "overrides": dict(s.overrides)} for s in list_sectors()
            ]
            print(json.dumps(sectors, indent=2))
        else:
            print_sectors()
        return 0

    service = VettingService(
        collector=ProPublicaCollector(config.propublica, logger=logger),
        thresholds=config.thresholds,
        logger=logger,
    )

    if args.command == "search":
        return emit(service.search_nonprofit(args.query, args.state, args.city), args.json, print_search)
    if args.command == "profile":
        return emit(service.get_nonprofit_profile(args.ein), args.json, print_profile)
    if args.command == "tier1":
        return emit(service.check_tier1(args.ein), args.json, print_tier1)
    if args.command == "red-flags":
        return emit(service.get_red_flags(args.ein), args.json, print_red_flags)

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
