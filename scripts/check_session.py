"""Print a Stripe checkout session's payment status and the portrait order stored on it."""
import os
import sys

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import get_settings
from main import get_checkout_service
from services import CheckoutError, is_paid, read_session_metadata, session_email


def main():
    if len(sys.argv) != 2:
        print("Usage: python scripts/check_session.py <checkout_session_id>")
        return 1
    settings = get_settings()
    if not settings.stripe_api_key:
        print("ERROR: Set STRIPE_API_KEY in .env or environment")
        return 1

    checkout = get_checkout_service(settings)
    try:
        session = checkout.retrieve_session(sys.argv[1])
    except CheckoutError as e:
        print("ERROR:", e)
        return 1

    order = read_session_metadata(session.get("metadata"))
    print("session_id:", sys.argv[1])
    print("  paid:", is_paid(session), "| payment_status:", session.get("payment_status"))
    print("  email:", session_email(session) or "-")
    print("  name:", f"{order['firstName']} {order['lastName']}".strip() or "-")
    print("  styles:", ", ".join(order["styleLabels"]) or "-")
    print("  delivery:", ", ".join(order["delivery"]) or "-")
    return 0


if __name__ == "__main__":
    sys.exit(main())
