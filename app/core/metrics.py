"""
Booking metrics and component health checks
"""

import time
import logging
from typing import Any, Dict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
import asyncio

from app.core.exceptions import PersistenceError, VenueUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class BookingMetrics:
    """Booking system metrics"""
    total_bookings: int = 0
    successful_bookings: int = 0
    failed_bookings: int = 0
    conflicted_bookings: int = 0
    database_failures: int = 0

    concurrent_bookings: int = 0
    max_concurrent_bookings: int = 0

    # Last 1000 durations, for percentiles
    booking_times: list = field(default_factory=list)

    def add_booking_time(self, duration: float):
        self.booking_times.append(duration)
        if len(self.booking_times) > 1000:
            self.booking_times = self.booking_times[-1000:]

    def get_percentiles(self) -> Dict[str, float]:
        if not self.booking_times:
            return {"p50": 0.0, "p95": 0.0, "p99": 0.0}

        sorted_times = sorted(self.booking_times)
        length = len(sorted_times)
        return {
            "p50": sorted_times[int(length * 0.5)],
            "p95": sorted_times[min(int(length * 0.95), length - 1)],
            "p99": sorted_times[min(int(length * 0.99), length - 1)],
        }

    def get_success_rate(self) -> float:
        if self.total_bookings == 0:
            return 0.0
        return (self.successful_bookings / self.total_bookings) * 100

    def to_dict(self) -> Dict:
        percentiles = self.get_percentiles()
        return {
            "total_bookings": self.total_bookings,
            "successful_bookings": self.successful_bookings,
            "failed_bookings": self.failed_bookings,
            "conflicted_bookings": self.conflicted_bookings,
            "success_rate_percent": self.get_success_rate(),
            "performance": {
                "percentiles_ms": {k: v * 1000 for k, v in percentiles.items()},
            },
            "concurrency": {
                "current_concurrent_bookings": self.concurrent_bookings,
                "max_concurrent_bookings": self.max_concurrent_bookings,
                "database_failures": self.database_failures,
            },
        }


class MetricsCollector:
    """In-process collector for booking attempts"""

    def __init__(self):
        self.metrics = BookingMetrics()
        self.logger = logging.getLogger(__name__)
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def track_booking_operation(self, operation_type: str = "booking"):
        """Context manager to track booking operation metrics"""
        start_time = time.monotonic()

        async with self._lock:
            self.metrics.concurrent_bookings += 1
            if self.metrics.concurrent_bookings > self.metrics.max_concurrent_bookings:
                self.metrics.max_concurrent_bookings = self.metrics.concurrent_bookings

        try:
            yield
        except Exception as e:
            duration = time.monotonic() - start_time
            async with self._lock:
                self.metrics.total_bookings += 1
                self.metrics.failed_bookings += 1
                self.metrics.add_booking_time(duration)
                self.metrics.concurrent_bookings -= 1
                if isinstance(e, VenueUnavailableError):
                    self.metrics.conflicted_bookings += 1
                elif isinstance(e, PersistenceError):
                    self.metrics.database_failures += 1

            self.logger.warning(f"Failed {operation_type} operation: {e} (duration: {duration:.2f}s)")
            raise

        duration = time.monotonic() - start_time
        async with self._lock:
            self.metrics.total_bookings += 1
            self.metrics.successful_bookings += 1
            self.metrics.add_booking_time(duration)
            self.metrics.concurrent_bookings -= 1

        if duration > 5.0:
            self.logger.warning(f"Slow {operation_type} operation: {duration:.2f}s")

    async def get_metrics(self) -> Dict:
        async with self._lock:
            return self.metrics.to_dict()

    async def reset_metrics(self):
        """Reset all metrics (useful for testing)"""
        async with self._lock:
            self.metrics = BookingMetrics()


class HealthChecker:
    """Health checking for database and Redis"""

    def __init__(self, redis_manager, db_manager):
        self.redis_manager = redis_manager
        self.db_manager = db_manager

    @staticmethod
    async def _timed(check) -> Dict[str, Any]:
        start_time = time.monotonic()
        try:
            await check()
        except Exception as e:
            return {"status": "unhealthy", "response_time_ms": None, "error": str(e)}
        return {
            "status": "healthy",
            "response_time_ms": (time.monotonic() - start_time) * 1000,
            "error": None
        }

    async def check_redis_health(self) -> Dict[str, Any]:
        async def ping():
            client = await self.redis_manager.get_client()
            await client.ping()
        return await self._timed(ping)

    async def check_database_health(self) -> Dict[str, Any]:
        return await self._timed(self.db_manager.ping)

    async def get_system_health(self) -> Dict[str, Any]:
        """
        Database down is unhealthy; Redis down only degrades the service,
        since rate limiting and geocode caching fail open
        """
        redis_health = await self.check_redis_health()
        db_health = await self.check_database_health()

        if db_health["status"] != "healthy":
            overall_status = "unhealthy"
        elif redis_health["status"] != "healthy":
            overall_status = "degraded"
        else:
            overall_status = "healthy"

        return {
            "status": overall_status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": {
                "redis": redis_health,
                "database": db_health
            }
        }


# Global instances
metrics_collector = MetricsCollector()
