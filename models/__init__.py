from .schemas import (
    CatalogResponse,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    DeliveryInfo,
    ErrorResponse,
    GeneratePortraitResponse,
    PortraitResult,
    SessionStatusResponse,
    StyleInfo,
)

__all__ = [
    "CatalogResponse",
    "CheckoutSessionRequest",
    "CheckoutSessionResponse",
    "DeliveryInfo",
    "ErrorResponse",
    "GeneratePortraitResponse",
    "PortraitResult",
    "SessionStatusResponse",
    "StyleInfo",
]
