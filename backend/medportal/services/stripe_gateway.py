"""Thin wrapper over the Stripe SDK so payment logic can be exercised without the network."""
import json
import logging
from typing import Optional

import stripe

from medportal.core.config import settings

logger = logging.getLogger(__name__)

# Stripe's default replay window for signed webhook payloads
WEBHOOK_TOLERANCE_SECONDS = 300


class StripeGateway:
    def __init__(self, secret_key: str, webhook_secret: str, api_version: Optional[str] = None):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.api_version = api_version

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    def create_payment_intent(self, amount_cents: int, currency: str, metadata: dict) -> dict:
        """Returns {"id", "client_secret"}. Raises stripe.StripeError."""
        intent = stripe.PaymentIntent.create(
            amount=amount_cents,
            currency=currency,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
            api_key=self.secret_key,
            stripe_version=self.api_version,
        )
        return {"id": intent.id, "client_secret": intent.client_secret}

    def construct_event(self, payload: bytes, signature: str) -> dict:
        """
        Verify the Stripe-Signature header and decode the event.

        Raises:
            stripe.SignatureVerificationError: bad or stale signature
            ValueError: payload is not valid JSON
        """
        body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        stripe.WebhookSignature.verify_header(
            body, signature, self.webhook_secret, WEBHOOK_TOLERANCE_SECONDS
        )
        return json.loads(body)


def get_stripe_gateway() -> StripeGateway:
    """FastAPI dependency; reads settings on every call so config changes apply."""
    if not settings.STRIPE_SECRET_KEY:
        logger.debug("Stripe secret key not configured")
    return StripeGateway(
        settings.STRIPE_SECRET_KEY,
        settings.STRIPE_WEBHOOK_SECRET,
        settings.STRIPE_API_VERSION,
    )
