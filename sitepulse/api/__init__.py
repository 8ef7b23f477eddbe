"""HTTP surface: FastAPI application and routes."""

from sitepulse.api.app import create_app

__all__ = ["create_app"]
