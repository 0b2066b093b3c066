"""API Routers"""

from api.routers import availability, health, levels, venting

__all__ = ["availability", "health", "levels", "venting"]
