"""
Service-tier pricing for venue bookings
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Dict, Mapping

from app.core.exceptions import InvalidServicesError

SERVICE_NAMES = ("catering", "decoration", "photography", "music")

SERVICE_TIERS: Dict[str, Dict[str, int]] = {
    "catering": {"none": 0, "standard": 100, "premium": 200},
    "decoration": {"none": 0, "standard": 50, "premium": 150},
    "photography": {"none": 0, "standard": 75, "premium": 175},
    "music": {"none": 0, "standard": 60, "premium": 120},
}


def price_of(service_name: str, tier_label: str) -> int:
    """
    Cost of one service at the given tier.

    Tier labels are case-insensitive. An unknown tier label costs 0, the same
    as "none"; an unknown service name is an error.
    """
    tiers = SERVICE_TIERS.get(service_name)
    if tiers is None:
        raise InvalidServicesError(f"Unknown service: {service_name}", field=f"services.{service_name}")
    if not isinstance(tier_label, str):
        return 0
    return tiers.get(tier_label.strip().lower(), 0)


@dataclass(frozen=True)
class ServiceSelection:
    """Tier label chosen for each of the four services"""
    catering: str
    decoration: str
    photography: str
    music: str

    @classmethod
    def from_mapping(cls, services: Any) -> "ServiceSelection":
        if not isinstance(services, Mapping):
            raise InvalidServicesError()
        missing = [name for name in SERVICE_NAMES if name not in services]
        if missing:
            raise InvalidServicesError(
                "Services must include catering, decoration, photography, and music "
                f"(missing: {', '.join(missing)})"
            )
        return cls(**{name: services[name] for name in SERVICE_NAMES})

    def costs(self) -> "ServiceCosts":
        return ServiceCosts(**{
            f.name: Decimal(price_of(f.name, getattr(self, f.name)))
            for f in fields(self)
        })


@dataclass(frozen=True)
class ServiceCosts:
    catering: Decimal
    decoration: Decimal
    photography: Decimal
    music: Decimal

    @property
    def total(self) -> Decimal:
        return self.catering + self.decoration + self.photography + self.music
