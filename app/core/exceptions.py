"""
Custom application exceptions
"""

from typing import Optional, Dict, Any


class VenuelyException(Exception):
    """Base exception for Venuely application"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(VenuelyException):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_ERROR",
            status_code=401,
            details=details
        )


class AuthorizationError(VenuelyException):
    """Authorization related errors"""

    def __init__(self, message: str = "Not authorized", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_FORBIDDEN",
            status_code=403,
            details=details
        )


class ValidationError(VenuelyException):
    """Validation errors"""

    def __init__(self, message: str, field: Optional[str] = None, code: str = "VALIDATION_ERROR"):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code=code,
            status_code=400,
            details=details
        )


class InvalidDateError(ValidationError):
    """Date missing, unparseable or out of order"""

    def __init__(self, message: str = "Invalid date format", field: Optional[str] = None):
        super().__init__(message=message, field=field, code="INVALID_DATE")


class InvalidServicesError(ValidationError):
    """Services selection does not name all four services"""

    def __init__(
        self,
        message: str = "Services must include catering, decoration, photography, and music",
        field: Optional[str] = "services"
    ):
        super().__init__(message=message, field=field, code="INVALID_SERVICES")


class InvalidCostError(ValidationError):
    """Computed total cost is not a finite positive number"""

    def __init__(self, message: str = "Total cost must be a finite positive number"):
        super().__init__(message=message, field="total_cost", code="INVALID_COST")


class NotFoundError(VenuelyException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id {identifier} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404
        )


class VenueNotFoundError(NotFoundError):
    """Venue not found"""

    def __init__(self, venue_id: Any = None):
        super().__init__("Venue", venue_id)
        self.code = "VENUE_NOT_FOUND"


class ConflictError(VenuelyException):
    """Resource conflict errors"""

    def __init__(self, message: str, details: Optional[Dict] = None, code: str = "CONFLICT"):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details=details
        )


class VenueUnavailableError(ConflictError):
    """Venue already booked for an overlapping date range"""

    def __init__(self, venue_id: Any, start_date: Any, end_date: Any):
        super().__init__(
            message="Venue is not available for the selected time slot",
            code="VENUE_UNAVAILABLE",
            details={
                "venue_id": str(venue_id),
                "start_date": str(start_date),
                "end_date": str(end_date)
            }
        )


class ExternalServiceError(VenuelyException):
    """External service error"""

    def __init__(self, service: str, message: str = None, status_code: int = 503, code: str = "EXTERNAL_SERVICE_ERROR"):
        super().__init__(
            message=message or f"External service {service} is unavailable",
            code=code,
            status_code=status_code,
            details={"service": service}
        )


class GeocodeError(ExternalServiceError):
    """Location could not be geocoded"""

    def __init__(self, location: str, message: str = None):
        super().__init__(
            service="geocoding",
            message=message or "Could not geocode the provided location.",
            code="GEOCODE_FAILED"
        )
        self.details["location"] = location


class PaymentError(ExternalServiceError):
    """Payment related errors"""

    def __init__(self, message: str = "Payment failed. Booking not created.", details: Optional[Dict] = None):
        super().__init__(
            service="payment",
            message=message,
            status_code=402,
            code="PAYMENT_FAILED"
        )
        self.details.update(details or {})


class PersistenceError(VenuelyException):
    """Storage layer failure"""

    def __init__(self, message: str = "Could not persist changes", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="PERSISTENCE_ERROR",
            status_code=500,
            details=details
        )


class RateLimitError(VenuelyException):
    """Rate limit exceeded error"""

    def __init__(self, limit: int, window: int):
        super().__init__(
            message=f"Rate limit exceeded. Max {limit} requests per {window} seconds",
            code="RATE_LIMIT_EXCEEDED",
            status_code=429,
            details={"limit": limit, "window": window}
        )
