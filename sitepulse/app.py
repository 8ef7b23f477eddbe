# ==============================================================================
# SitePulse CLI
# ==============================================================================
"""
Command-line interface for the SitePulse analytics server.

Usage:
    sitepulse --help
    sitepulse serve
    sitepulse stats --json
    sitepulse sessions -n 50
    sitepulse config show
    sitepulse data reset -y
"""

import os

import typer

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="sitepulse",
    help="SitePulse web analytics CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

# Register config commands from cli.config module
from sitepulse.cli.config import config_show

config_app.command("show")(config_show)

data_app = typer.Typer(
    help="Data management operations",
    no_args_is_help=True,
)
app.add_typer(data_app, name="data")

# Register data commands from cli.data module
from sitepulse.cli.data import data_reset

data_app.command("reset")(data_reset)

from sitepulse.cli.server import serve

app.command("serve")(serve)

from sitepulse.cli.stats import show_stats

app.command("stats")(show_stats)

from sitepulse.cli.sessions import list_sessions

app.command("sessions")(list_sessions)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
