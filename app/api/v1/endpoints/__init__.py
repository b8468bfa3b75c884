"""
API endpoints module
"""

from . import venues, bookings, events, health

__all__ = [
    "venues",
    "bookings",
    "events",
    "health"
]
