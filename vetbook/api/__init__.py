"""HTTP layer for the booking core."""

from vetbook.api.app import create_app

__all__ = ["create_app"]
