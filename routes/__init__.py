"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.place_import import router as place_import_router

__all__ = [
    "place_import_router",
]
