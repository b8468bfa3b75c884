"""
Venue model
"""

from sqlalchemy import Column, String, Integer, Text, Float, Numeric, CheckConstraint
from sqlalchemy.orm import relationship

from app.models.base import BaseModel


class Venue(BaseModel):
    """
    Bookable venue; coordinates stay null when geocoding failed
    """
    __tablename__ = "venues"

    name = Column(String(255), nullable=False, index=True)
    location = Column(Text, nullable=False)
    latitude = Column(Float, nullable=True, index=True)
    longitude = Column(Float, nullable=True, index=True)
    capacity = Column(Integer, nullable=False, index=True)
    price_per_day = Column(Numeric(10, 2), nullable=False, index=True)
    description = Column(Text)
    image_url = Column(String(500))

    # Relationships
    events = relationship("Event", back_populates="venue")
    bookings = relationship("VenueBooking", back_populates="venue", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="chk_venues_capacity_positive"),
        CheckConstraint("price_per_day > 0", name="chk_venues_price_positive"),
        CheckConstraint(
            "(latitude IS NULL AND longitude IS NULL) OR (latitude IS NOT NULL AND longitude IS NOT NULL)",
            name="chk_venues_coordinates_paired"
        ),
    )

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def __repr__(self):
        return f"<Venue(id={self.id}, name={self.name}, capacity={self.capacity}, price_per_day={self.price_per_day})>"
