# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the SitePulse CLI.
"""

import json
from typing import Annotated

import typer

from sitepulse.cli.shared import C
from sitepulse.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()

    if json_output:
        config = {
            "store": {
                "backend": settings.store.backend,
                "data_file": str(settings.store.data_file_path),
                "counters_file": str(settings.store.counters_file_path),
                "key_prefix": settings.store.key_prefix,
                "strict_writes": settings.store.strict_writes,
            },
            "valkey": {
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "db": settings.valkey.db,
                "ssl_enabled": settings.valkey.ssl,
                "password": settings.valkey.password,
            },
            "geoip": {
                "db_path": str(settings.geoip.db_file_path),
                "available": settings.geoip.db_file_path.exists(),
            },
            "session": {
                "match_strategy": settings.session.match_strategy,
                "landing_page": settings.session.landing_page,
            },
            "server": {
                "host": settings.server.host,
                "port": settings.server.port,
                "static_dir": str(settings.server.static_dir_path),
                "trust_proxy": settings.server.trust_proxy,
            },
            "report": {
                "timezone": settings.report.timezone,
            },
            "log_level": settings.log_level,
        }
        print(json.dumps(config, indent=2))
        return

    # Human-readable output
    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    print(f"{C.CYAN}Store{C.RESET}")
    print(f"  Backend:    {C.WHITE}{settings.store.backend}{C.RESET}")
    if settings.store.backend == "json":
        print(f"  Data File:  {C.WHITE}{settings.store.data_file_path}{C.RESET}")
        print(f"  Counters:   {C.WHITE}{settings.store.counters_file_path}{C.RESET}")
    elif settings.store.backend == "valkey":
        print(f"  Prefix:     {C.WHITE}{settings.store.key_prefix}{C.RESET}")
    writes = "strict" if settings.store.strict_writes else "best effort"
    print(f"  Writes:     {C.WHITE}{writes}{C.RESET}")
    print()

    if settings.store.backend == "valkey":
        print(f"{C.CYAN}Valkey{C.RESET}")
        print(f"  Host:       {C.WHITE}{settings.valkey.host}{C.RESET}")
        print(f"  Port:       {C.WHITE}{settings.valkey.port}{C.RESET}")
        valkey_ssl = "enabled" if settings.valkey.ssl else "disabled"
        print(f"  SSL:        {C.WHITE}{valkey_ssl}{C.RESET}")
        print()

    print(f"{C.CYAN}GeoIP{C.RESET}")
    geo_status = "found" if settings.geoip.db_file_path.exists() else "missing"
    print(f"  Database:   {C.WHITE}{settings.geoip.db_file_path} ({geo_status}){C.RESET}")
    print()

    print(f"{C.CYAN}Sessions{C.RESET}")
    print(f"  Matching:   {C.WHITE}{settings.session.match_strategy}{C.RESET}")
    print(f"  Landing:    {C.WHITE}{settings.session.landing_page}{C.RESET}")
    print()

    print(f"{C.CYAN}Server{C.RESET}")
    print(f"  Listen:     {C.WHITE}{settings.server.host}:{settings.server.port}{C.RESET}")
    print(f"  Static:     {C.WHITE}{settings.server.static_dir_path}{C.RESET}")
    proxy = "trusted" if settings.server.trust_proxy else "ignored"
    print(f"  Proxy:      {C.WHITE}{proxy}{C.RESET}")
    print()

    print(f"{C.CYAN}Report{C.RESET}")
    print(f"  Timezone:   {C.WHITE}{settings.report.timezone or 'server local'}{C.RESET}")
    print()
