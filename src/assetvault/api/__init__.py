"""assetvault HTTP surface (FastAPI)."""

from assetvault.api.main import create_app

__all__ = ["create_app"]
