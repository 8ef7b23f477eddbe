# ==============================================================================
# Data Commands
# ==============================================================================
"""
Data management commands for the SitePulse CLI.
"""

from typing import Annotated

import typer

from sitepulse.base.stores import StoreError
from sitepulse.cli.shared import C, I, get_service
from sitepulse.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def data_reset(
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Delete every stored session and zero the counters.

    Examples:
        sitepulse data reset       # With confirmation prompt
        sitepulse data reset -y    # Skip confirmation
    """
    backend = get_settings().store.backend

    if not confirm:
        typer.confirm(
            f"This will DELETE all analytics data from the {backend} store. Are you sure?",
            abort=True,
        )
        print()

    print(f"  Resetting {C.WHITE}{backend}{C.RESET} store...")
    try:
        get_service().reset()
    except StoreError as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} Failed to reset data: {e}{C.RESET}")
        raise typer.Exit(1)
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Sessions and counters cleared{C.RESET}")
    print()
