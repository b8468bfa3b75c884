"""
Payment model for transaction processing
"""

from sqlalchemy import Column, String, Numeric, Enum, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import enum

from app.models.base import BaseModel


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    PAYPAL = "PAYPAL"
    STRIPE = "STRIPE"


class Payment(BaseModel):
    """
    Payment model for tracking transactions
    """
    __tablename__ = "payments"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    venue_booking_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("venue_bookings.id", ondelete="CASCADE"),
        nullable=True,
        unique=True
    )
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    status = Column(
        Enum(PaymentStatus),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True
    )
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    gateway_reference = Column(String(255), unique=True)

    # Timestamps
    processed_at = Column(DateTime(timezone=True))
    refunded_at = Column(DateTime(timezone=True))

    # Relationships
    venue_booking = relationship("VenueBooking", back_populates="payment")
    ticket_booking = relationship("TicketBooking", back_populates="payment", uselist=False)

    def __repr__(self):
        return f"<Payment(id={self.id}, amount={self.amount}, status={self.status})>"
