"""
Geocoding adapter
Turns free-text locations into coordinates through an OpenCage compatible API
"""

import hashlib
import logging
from typing import Optional

import httpx

from app.config import settings
from app.core.exceptions import GeocodeError
from app.services.geo import Coordinates

logger = logging.getLogger(__name__)


class Geocoder:
    """
    HTTP geocoder with optional Redis caching of successful lookups
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        cache=None,
        cache_ttl: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url or settings.GEOCODING_API_URL
        self.api_key = api_key if api_key is not None else settings.GEOCODING_API_KEY
        self.timeout = timeout or settings.GEOCODING_TIMEOUT_SECONDS
        self.cache = cache
        self.cache_ttl = cache_ttl or settings.GEOCODE_CACHE_TTL
        self.transport = transport

    @staticmethod
    def _cache_key(location: str) -> str:
        digest = hashlib.sha256(location.strip().lower().encode()).hexdigest()[:32]
        return f"geocode:{digest}"

    async def _cached(self, location: str) -> Optional[Coordinates]:
        if self.cache is None:
            return None
        try:
            cached = await self.cache.get(self._cache_key(location))
        except Exception as e:
            logger.warning(f"Geocode cache read failed: {e}")
            return None
        if isinstance(cached, dict) and "latitude" in cached and "longitude" in cached:
            return Coordinates(latitude=float(cached["latitude"]), longitude=float(cached["longitude"]))
        return None

    async def _store(self, location: str, coordinates: Coordinates) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(
                self._cache_key(location),
                {"latitude": coordinates.latitude, "longitude": coordinates.longitude},
                ttl=self.cache_ttl
            )
        except Exception as e:
            logger.warning(f"Geocode cache write failed: {e}")

    async def geocode(self, location: str) -> Optional[Coordinates]:
        """
        Resolve a location to coordinates.

        Returns None when the service has no result for the location.
        Raises GeocodeError when the service itself cannot be reached or
        answers with an error.
        """
        if not location or not location.strip():
            return None

        cached = await self._cached(location)
        if cached is not None:
            return cached

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    self.api_url,
                    params={"q": location, "key": self.api_key}
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Geocoding request failed for '{location}': {e}")
            raise GeocodeError(location, message="Geocoding service is unavailable")
        except ValueError as e:
            logger.error(f"Geocoding service returned invalid JSON for '{location}': {e}")
            raise GeocodeError(location, message="Geocoding service returned an invalid response")

        results = (payload.get("results") or []) if isinstance(payload, dict) else []
        if not results:
            logger.info(f"No geocoding result for '{location}'")
            return None

        geometry = results[0].get("geometry") or {}
        try:
            coordinates = Coordinates(latitude=float(geometry["lat"]), longitude=float(geometry["lng"]))
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Geocoding result for '{location}' has no usable geometry")
            return None

        await self._store(location, coordinates)
        return coordinates


def get_geocoder() -> Geocoder:
    """
    Dependency returning the configured geocoder
    """
    cache = None
    if settings.GEOCODE_CACHE_ENABLED:
        from app.core.redis import redis_manager
        cache = redis_manager
    return Geocoder(cache=cache)
