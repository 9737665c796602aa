"""HTTP API for bubu."""

from bubu.api.app import create_app

__all__ = ["create_app"]
