"""
app/api/routers package marker.
"""

from app.api.routers.lead_lists import router as lead_lists_router

__all__ = [
    "lead_lists_router",
]
