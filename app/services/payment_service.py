"""
Payment gateways
Simulated gateway for development and tests, Stripe for production
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional

import stripe

from app.config import settings
from app.core.exceptions import PaymentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of a successful charge"""
    reference: str
    amount: Decimal
    currency: str


class PaymentGateway:
    """
    Narrow charge/refund interface used by the booking services
    """

    async def charge(
        self,
        amount: Decimal,
        currency: str = "usd",
        metadata: Optional[Dict[str, str]] = None
    ) -> PaymentResult:
        raise NotImplementedError

    async def refund(self, reference: str) -> None:
        raise NotImplementedError


class SimulatedPaymentGateway(PaymentGateway):
    """
    Always approves after a short delay
    """

    def __init__(self, delay_seconds: Optional[float] = None):
        self.delay_seconds = settings.PAYMENT_SIMULATION_DELAY_SECONDS if delay_seconds is None else delay_seconds

    async def charge(self, amount, currency="usd", metadata=None) -> PaymentResult:
        logger.info(f"Processing simulated payment of {amount} {currency.upper()}")
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        return PaymentResult(reference=f"sim_{uuid.uuid4().hex}", amount=amount, currency=currency)

    async def refund(self, reference: str) -> None:
        logger.info(f"Simulated refund for {reference}")


class StripePaymentGateway(PaymentGateway):
    """
    Charges through a confirmed Stripe PaymentIntent
    """

    def __init__(self, api_key: Optional[str] = None, payment_method: str = "pm_card_visa"):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self.payment_method = payment_method

    async def charge(self, amount, currency="usd", metadata=None) -> PaymentResult:
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                api_key=self.api_key,
                amount=int(amount * 100),
                currency=currency,
                payment_method=self.payment_method,
                payment_method_types=["card"],
                confirm=True,
                metadata=metadata or {}
            )
        except stripe.CardError as e:
            logger.error(f"Card declined: {e}")
            raise PaymentError(f"Card declined: {e.user_message or e}")
        except stripe.StripeError as e:
            logger.error(f"Stripe error: {e}")
            raise PaymentError("Payment processing error")

        if intent.status != "succeeded":
            logger.error(f"Payment intent {intent.id} ended in status {intent.status}")
            raise PaymentError(details={"payment_intent": intent.id, "status": intent.status})

        return PaymentResult(reference=intent.id, amount=amount, currency=currency)

    async def refund(self, reference: str) -> None:
        try:
            await asyncio.to_thread(
                stripe.Refund.create,
                api_key=self.api_key,
                payment_intent=reference,
                reason="requested_by_customer"
            )
        except stripe.StripeError as e:
            logger.error(f"Refund error for {reference}: {e}")
            raise PaymentError("Refund processing error", details={"reference": reference})


def get_payment_gateway() -> PaymentGateway:
    """
    Dependency returning the configured payment gateway
    """
    if settings.PAYMENT_PROVIDER == "stripe":
        return StripePaymentGateway()
    return SimulatedPaymentGateway()
