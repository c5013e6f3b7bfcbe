"""
Stripe Checkout sessions for portrait orders – line items, metadata and
payment checks. Stripe metadata values must be flat strings, so list
selections are stored JSON-encoded.
"""
import asyncio
import json
import logging
from typing import Any, Mapping, Optional

import stripe

from services.catalog import get_delivery, normalize_delivery, normalize_styles, style_labels

logger = logging.getLogger(__name__)

PRODUCT_NAME = "Royal Pet Portrait"


class CheckoutError(Exception):
    """Stripe rejected or failed a checkout call; message is safe to show the customer."""


def build_line_items(styles: list[str], delivery: list[str], currency: str = "usd") -> list[dict]:
    """One line item per delivery option; quantity is the number of styles."""
    description = "AI-crafted pet portrait styles: " + ", ".join(style_labels(styles))
    items = []
    for key in delivery:
        option = get_delivery(key)
        if option is None:
            continue
        items.append(
            {
                "price_data": {
                    "currency": currency,
                    "product_data": {
                        "name": f"{PRODUCT_NAME} – {option.label}",
                        "description": description,
                    },
                    "unit_amount": option.unit_amount,
                },
                "quantity": len(styles),
            }
        )
    return items


def build_session_metadata(first_name: str, last_name: str, styles: list[str], delivery: list[str]) -> dict[str, str]:
    return {
        "firstName": first_name,
        "lastName": last_name,
        "styles": json.dumps(styles),
        "styleLabels": json.dumps(style_labels(styles)),
        "delivery": json.dumps(delivery),
        "styleCount": str(len(styles)),
        "deliveryCount": str(len(delivery)),
    }


def read_session_metadata(metadata: Optional[Mapping[str, Any]]) -> dict:
    """Decode the order selections stored on a session; tolerates missing or garbled values."""
    metadata = metadata or {}
    styles = normalize_styles(metadata.get("styles"))
    labels: list[str] = []
    raw_labels = metadata.get("styleLabels")
    if isinstance(raw_labels, str):
        try:
            decoded = json.loads(raw_labels)
        except ValueError:
            decoded = None
        if isinstance(decoded, list):
            labels = [str(label) for label in decoded]
    if len(labels) != len(styles):
        labels = style_labels(styles)
    return {
        "firstName": metadata.get("firstName") or "",
        "lastName": metadata.get("lastName") or "",
        "styles": styles,
        "styleLabels": labels,
        "delivery": normalize_delivery(metadata.get("delivery")),
    }


def resolve_generation_styles(requested: list[str], purchased: list[str]) -> list[str]:
    """
    Styles to generate: the requested ones that were purchased, in request order.
    An empty overlap falls back to everything purchased; sessions without recorded
    styles use the request as-is.
    """
    if not purchased:
        return list(requested)
    allowed = [s for s in requested if s in purchased]
    return allowed or list(purchased)


def session_email(session: Mapping[str, Any]) -> Optional[str]:
    details = session.get("customer_details") or {}
    return details.get("email") or session.get("customer_email")


def is_paid(session: Mapping[str, Any]) -> bool:
    return session.get("payment_status") == "paid"


def _stripe_message(e: Exception, fallback: str) -> str:
    return getattr(e, "user_message", None) or str(e) or fallback


class CheckoutService:
    def __init__(self, client: stripe.StripeClient, currency: str = "usd"):
        self.client = client
        self.currency = currency

    def create_session(
        self,
        first_name: str,
        last_name: str,
        email: str,
        styles: list[str],
        delivery: list[str],
        base_url: str,
    ) -> tuple[str, str]:
        """Create a Checkout session. Returns (session_id, redirect_url)."""
        base = base_url.rstrip("/")
        params = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "customer_email": email,
            "metadata": build_session_metadata(first_name, last_name, styles, delivery),
            "line_items": build_line_items(styles, delivery, self.currency),
            "success_url": f"{base}/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{base}/?canceled=true",
        }
        try:
            session = self.client.checkout.sessions.create(params=params)
        except stripe.StripeError as e:
            logger.exception("Stripe checkout session error")
            raise CheckoutError(_stripe_message(e, "Unable to create checkout session.")) from e
        logger.info(
            "Checkout session created: %s (%d style(s), delivery=%s)",
            session.get("id"),
            len(styles),
            ",".join(delivery),
        )
        return session.get("id"), session.get("url")

    def retrieve_session(self, session_id: str) -> Mapping[str, Any]:
        try:
            return self.client.checkout.sessions.retrieve(session_id)
        except stripe.StripeError as e:
            logger.exception("Stripe session retrieve error")
            raise CheckoutError(_stripe_message(e, "Unable to retrieve checkout session.")) from e

    async def create_session_async(
        self,
        first_name: str,
        last_name: str,
        email: str,
        styles: list[str],
        delivery: list[str],
        base_url: str,
    ) -> tuple[str, str]:
        """Create a Checkout session without blocking the event loop."""
        return await asyncio.to_thread(
            self.create_session,
            first_name,
            last_name,
            email,
            styles,
            delivery,
            base_url,
        )

    async def retrieve_session_async(self, session_id: str) -> Mapping[str, Any]:
        return await asyncio.to_thread(self.retrieve_session, session_id)
