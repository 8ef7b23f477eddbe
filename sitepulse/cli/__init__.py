"""CLI command modules for the SitePulse app."""
