"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter, Depends
from app.api.v1.endpoints import (
    venues,
    bookings,
    events,
    health
)
from app.config import settings
from app.core.security import ClientRateLimiter

api_rate_limit = ClientRateLimiter(settings.RATE_LIMIT_PER_MINUTE)

api_router = APIRouter(dependencies=[Depends(api_rate_limit)])

api_router.include_router(venues.router, prefix="/venues", tags=["venues"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
