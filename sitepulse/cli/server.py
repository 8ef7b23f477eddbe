# ==============================================================================
# Serve Command
# ==============================================================================
"""
Runs the HTTP server with uvicorn.
"""

import logging
from typing import Annotated, Optional

import typer
import uvicorn

from sitepulse.cli.shared import C, I
from sitepulse.utils.config import get_settings

logger = logging.getLogger(__name__)


def serve(
    host: Annotated[
        Optional[str], typer.Option("--host", help="Bind address (default: SERVER_HOST)")
    ] = None,
    port: Annotated[
        Optional[int], typer.Option("--port", "-p", help="Bind port (default: SERVER_PORT)")
    ] = None,
) -> None:
    """Start the analytics HTTP server.

    Examples:
        sitepulse serve               # Uses SERVER_HOST / SERVER_PORT
        sitepulse serve -p 3000       # Override the port
    """
    from sitepulse.api import create_app

    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if settings.store.backend == "valkey":
        from sitepulse.infrastructure.stores.valkey import check_valkey_connection, get_valkey_client

        if not check_valkey_connection(get_valkey_client(settings)):
            print(
                f"{C.BRIGHT_RED}{I.CROSS} Cannot connect to Valkey at "
                f"{settings.valkey.host}:{settings.valkey.port}{C.RESET}"
            )
            raise typer.Exit(1)

    host = host or settings.server.host
    port = port or settings.server.port

    app = create_app(settings=settings)
    print(f"{C.BOLD}SitePulse{C.RESET} listening on {C.WHITE}http://{host}:{port}{C.RESET}")
    logger.info("Store backend: %s", settings.store.backend)
    # Access log only in debug mode, tracking heartbeats arrive every few seconds
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
        access_log=settings.debug,
    )
