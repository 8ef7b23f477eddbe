# ==============================================================================
# Sessions Command
# ==============================================================================
"""
Sessions command for the SitePulse CLI.

Lists the stored sessions, most recently updated first.
"""

import json
from typing import Annotated

import typer

from sitepulse.cli.shared import C, I, get_service


def list_sessions(
    limit: Annotated[
        int, typer.Option("--limit", "-n", help="Maximum number of sessions to show")
    ] = 20,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output raw session records as JSON")
    ] = False,
) -> None:
    """List stored sessions.

    Examples:
        sitepulse sessions            # 20 most recent sessions
        sitepulse sessions -n 100     # 100 most recent sessions
        sitepulse sessions --json     # Every stored record as JSON
    """
    sessions = get_service().list_sessions()

    if json_output:
        print(json.dumps([s.to_record() for s in sessions], indent=2))
        return

    if not sessions:
        print(f"\n{C.BRIGHT_YELLOW}{I.WARN} No sessions recorded{C.RESET}\n")
        return

    recent = sorted(sessions, key=lambda s: s.last_update, reverse=True)[:limit]

    print()
    print(f"{C.BOLD}Sessions{C.RESET} ({len(recent)} of {len(sessions)})")
    print()
    header = f"  {'Last Update':<20}{'IP':<18}{'Country':<9}{'Events':>7}{'Time':>8}  Session"
    print(f"{C.DIM}{header}{C.RESET}")
    for s in recent:
        updated = s.last_update.strftime("%Y-%m-%d %H:%M:%S")
        print(
            f"  {updated:<20}{s.ip[:17]:<18}{s.location.country[:8]:<9}"
            f"{len(s.session_events):>7}{s.total_time_on_page:>7}s  "
            f"{C.WHITE}{s.session_id or '-'}{C.RESET}"
        )
    print()
