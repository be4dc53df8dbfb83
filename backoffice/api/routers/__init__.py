"""API routers for the back office."""

from . import records

__all__ = [
    "records",
]
