from .catalog import DELIVERY_OPTIONS, STYLES, normalize_delivery, normalize_selection, normalize_styles
from .checkout import (
    CheckoutError,
    CheckoutService,
    is_paid,
    read_session_metadata,
    resolve_generation_styles,
    session_email,
)
from .portraits import PortraitService, build_portrait_prompt, persona_name

__all__ = [
    "DELIVERY_OPTIONS",
    "STYLES",
    "CheckoutError",
    "CheckoutService",
    "PortraitService",
    "build_portrait_prompt",
    "is_paid",
    "normalize_delivery",
    "normalize_selection",
    "normalize_styles",
    "persona_name",
    "read_session_metadata",
    "resolve_generation_styles",
    "session_email",
]
