"""Shared test fixtures."""

import time
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

import pytest
import stripe
from fastapi.testclient import TestClient

from clients import PortraitGenerationError
from config import Settings, get_settings
from main import app, get_checkout_service, get_portrait_service
from services import CheckoutService, PortraitService
from services.checkout import build_session_metadata

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def make_session(
    session_id: str = "cs_test_paid",
    payment_status: str = "paid",
    email: Optional[str] = "a@x.com",
    first_name: str = "Ada",
    last_name: str = "Lovelace",
    styles: Optional[list[str]] = None,
    delivery: Optional[list[str]] = None,
) -> dict[str, Any]:
    """Checkout session shaped like the Stripe API response."""
    styles = ["royal-costume"] if styles is None else styles
    delivery = ["digital"] if delivery is None else delivery
    return {
        "id": session_id,
        "object": "checkout.session",
        "payment_status": payment_status,
        "customer_email": email,
        "customer_details": {"email": email} if email else None,
        "metadata": build_session_metadata(first_name, last_name, styles, delivery),
    }


@dataclass
class FakeCheckoutSessions:
    """Stands in for StripeClient.checkout.sessions."""

    sessions: dict[str, dict] = field(default_factory=dict)
    created: list[dict] = field(default_factory=list)
    error: Optional[Exception] = None
    delay: float = 0.0

    def create(self, params: Optional[dict] = None, options: Optional[dict] = None) -> dict:
        time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.created.append(params or {})
        session_id = f"cs_test_{len(self.created)}"
        session = {"id": session_id, "url": f"https://checkout.stripe.com/c/pay/{session_id}", **(params or {})}
        self.sessions[session_id] = session
        return session

    def retrieve(self, session_id: str, params: Optional[dict] = None, options: Optional[dict] = None) -> dict:
        time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if session_id not in self.sessions:
            raise stripe.InvalidRequestError(f"No such checkout.session: '{session_id}'", "id")
        return self.sessions[session_id]


@dataclass
class FakeCheckout:
    sessions: FakeCheckoutSessions = field(default_factory=FakeCheckoutSessions)


@dataclass
class FakeStripeClient:
    checkout: FakeCheckout = field(default_factory=FakeCheckout)

    def add_session(self, session: dict) -> dict:
        self.checkout.sessions.sessions[session["id"]] = session
        return session


@dataclass
class FakeImageProvider:
    """Records image edit calls; fails on call number fail_on when set."""

    calls: list[dict] = field(default_factory=list)
    fail_on: Optional[int] = None
    error_message: str = "Your request was rejected by the safety system."
    output_mime_type: str = "image/png"

    def edit_image(self, image: bytes, prompt: str, filename: str = "pet.png", content_type: str = "image/png") -> str:
        self.calls.append({"image": image, "prompt": prompt, "filename": filename, "content_type": content_type})
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise PortraitGenerationError(self.error_message)
        return f"aW1hZ2Ut{len(self.calls)}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        stripe_api_key="sk_test_123",
        openai_api_key="sk-openai-test",
        public_base_url=None,
    )


@pytest.fixture
def stripe_client() -> FakeStripeClient:
    return FakeStripeClient()


@pytest.fixture
def image_provider() -> FakeImageProvider:
    return FakeImageProvider()


@pytest.fixture
def client(
    settings: Settings,
    stripe_client: FakeStripeClient,
    image_provider: FakeImageProvider,
) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_checkout_service] = lambda: CheckoutService(stripe_client, currency=settings.currency)
    app.dependency_overrides[get_portrait_service] = lambda: PortraitService(provider=image_provider)
    yield TestClient(app)
    app.dependency_overrides.clear()
