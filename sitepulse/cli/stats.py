# ==============================================================================
# Stats Command
# ==============================================================================
"""
Stats command for the SitePulse CLI.

Prints the same statistics report the dashboard renders.
"""

import json
from typing import Annotated

import typer

from sitepulse.cli.shared import (
    BOX_WIDTH,
    C,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _section_header,
    get_service,
)

TOP_ENTRIES = 5


def _top(table: dict[str, int], limit: int = TOP_ENTRIES) -> list[tuple[str, int]]:
    return sorted(table.items(), key=lambda item: (-item[1], item[0]))[:limit]


# ==============================================================================
# Commands
# ==============================================================================


def show_stats(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show the analytics statistics report.

    Covers page views, new and returning visitors, session trends, countries,
    traffic sources and devices. The hour-of-day breakdown is only included
    in the JSON output.

    Examples:
        sitepulse stats          # Formatted table output
        sitepulse stats --json   # Full report as JSON
    """
    report = get_service().get_stats()

    if json_output:
        print(json.dumps(report.to_dict(), indent=2))
        return

    W = BOX_WIDTH
    views = report.view_stats
    trends = report.trends

    print()
    print(_box_header("SITEPULSE ANALYTICS", W))
    print(_empty_line(W))
    print(_box_line(f"  {'Total Views':<28}{views.total_views:>12,}", W))
    print(_box_line(f"  {'Unique Visitors':<28}{views.unique_users:>12,}", W))
    print(_box_line(f"  {'New Users (24h)':<28}{views.new_users:>12,}", W))
    print(_box_line(f"  {'Returning Users (24h)':<28}{views.returning_users:>12,}", W))
    print(_empty_line(W))

    print(_section_header("Sessions", W))
    print(_box_line(f"  {'Last 24 Hours':<28}{trends.last_24h:>12,}", W))
    print(_box_line(f"  {'Last 7 Days':<28}{trends.last_7d:>12,}", W))
    print(_box_line(f"  {'Avg Time on Page':<28}{trends.average_time_on_page:>11,}s", W))
    print(_empty_line(W))

    if report.countries:
        print(_section_header("Countries", W))
        countries = sorted(
            report.countries.items(), key=lambda item: (-item[1].sessions, item[0])
        )[:TOP_ENTRIES]
        for code, entry in countries:
            row = f"  {code:<28}{entry.sessions:>12,} sessions  {entry.users:>6,} users"
            print(_box_line(row, W))
        print(_empty_line(W))

    if report.traffic.sources:
        print(_section_header("Traffic Sources", W))
        for source, count in _top(report.traffic.sources):
            print(_box_line(f"  {source[:28]:<28}{count:>12,}", W))
        print(_empty_line(W))

    devices = report.devices
    print(_section_header("Devices", W))
    print(_box_line(f"  {'Desktop':<28}{devices.desktop:>12,}", W))
    print(_box_line(f"  {'Mobile':<28}{devices.mobile:>12,}", W))
    print(_box_line(f"  {'Tablet':<28}{devices.tablet:>12,}", W))
    for browser, count in _top(devices.browsers, 3):
        print(_box_line(f"  {C.DIM}{browser[:28]:<28}{C.RESET}{count:>12,}", W))
    print(_empty_line(W))
    print(_box_bottom(W))
    print()
