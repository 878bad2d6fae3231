# Routers package
from . import availability, health, listings

__all__ = ["availability", "health", "listings"]
