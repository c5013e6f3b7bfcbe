"""
FastAPI application for royal pet portrait checkout and generation.
"""
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

import stripe
from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import EmailStr, TypeAdapter, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from clients import OpenAIImageClient, PortraitGenerationError
from config import Settings, get_settings
from models import (
    CatalogResponse,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    DeliveryInfo,
    ErrorResponse,
    GeneratePortraitResponse,
    SessionStatusResponse,
    StyleInfo,
)
from services import (
    DELIVERY_OPTIONS,
    STYLES,
    CheckoutError,
    CheckoutService,
    PortraitService,
    is_paid,
    normalize_delivery,
    normalize_styles,
    persona_name,
    read_session_metadata,
    resolve_generation_styles,
    session_email,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)
# Reduce noisy per-request logs from httpx/httpcore.
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

STATIC_DIR = Path(__file__).parent / "static"
_EMAIL_ADAPTER = TypeAdapter(EmailStr)
_ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def require_stripe_key(settings: Settings = Depends(get_settings)) -> None:
    if not settings.stripe_api_key:
        raise HTTPException(status_code=500, detail="Missing STRIPE_API_KEY environment variable")


def get_checkout_service(settings: Settings = Depends(get_settings)) -> CheckoutService:
    client = stripe.StripeClient(
        settings.stripe_api_key,
        max_network_retries=settings.stripe_max_network_retries,
        http_client=stripe.RequestsClient(timeout=settings.stripe_timeout_seconds),
    )
    return CheckoutService(client, currency=settings.currency)


def get_portrait_service(settings: Settings = Depends(get_settings)) -> Optional[PortraitService]:
    if not settings.openai_api_key:
        return None
    provider = OpenAIImageClient(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout_seconds=settings.api_timeout_seconds,
        model=settings.openai_image_model,
        size=settings.openai_image_size,
        output_format=settings.openai_output_format,
        max_retries=settings.max_retries,
        retry_base_wait=settings.retry_base_wait_seconds,
    )
    return PortraitService(provider=provider)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Royal pet portrait service starting")
    s = get_settings()
    if not s.stripe_api_key:
        logger.warning("Stripe: STRIPE_API_KEY not set; every request will fail")
    if s.openai_api_key:
        logger.info("OpenAI: image edits enabled (model=%s)", s.openai_image_model)
    else:
        logger.warning("OpenAI: OPENAI_API_KEY not set; portrait generation disabled")
    yield
    logger.info("Royal pet portrait service shutting down")


app = FastAPI(
    title="Royal Pet Portraits",
    description="Pay for AI pet portraits and turn a photo into the chosen art styles",
    version="1.0.0",
    lifespan=lifespan,
    dependencies=[Depends(require_stripe_key)],
)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"message": "Invalid request data."})


# Prevent HTML from being cached so users always get latest after deploy
_HTML_HEADERS = {"Cache-Control": "no-cache, no-store, must-revalidate", "Pragma": "no-cache", "Expires": "0"}


# ── Page routes ──────────────────────────────────────────────

@app.get("/health")
async def health() -> JSONResponse:
    """Lightweight health endpoint for uptime checks."""
    return JSONResponse({"status": "ok"})

@app.get("/")
async def index() -> FileResponse:
    return FileResponse(STATIC_DIR / "landing" / "index.html", headers=_HTML_HEADERS)

@app.get("/success")
async def success_page() -> FileResponse:
    return FileResponse(STATIC_DIR / "landing" / "success.html", headers=_HTML_HEADERS)


# ── Catalog API ──────────────────────────────────────────────

@app.get("/api/styles", response_model=CatalogResponse)
async def get_catalog(settings: Settings = Depends(get_settings)) -> CatalogResponse:
    """Styles and delivery options the order page renders."""
    return CatalogResponse(
        currency=settings.currency,
        styles=[StyleInfo(key=s.key, label=s.label) for s in STYLES.values()],
        delivery=[
            DeliveryInfo(key=d.key, label=d.label, unit_amount=d.unit_amount)
            for d in DELIVERY_OPTIONS.values()
        ],
    )


# ── Checkout API ─────────────────────────────────────────────

def _base_url(request: Request, settings: Settings) -> str:
    return (settings.public_base_url or str(request.base_url)).rstrip("/")


@app.post("/api/create-checkout-session", response_model=CheckoutSessionResponse, responses=_ERROR_RESPONSES)
async def create_checkout_session(
    request: Request,
    settings: Settings = Depends(get_settings),
    checkout: CheckoutService = Depends(get_checkout_service),
) -> CheckoutSessionResponse:
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Expected JSON payload.")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Expected JSON payload.")

    order = CheckoutSessionRequest.model_validate(payload)
    if not order.first_name or not order.last_name or not order.email:
        raise HTTPException(status_code=400, detail="Missing required customer information.")
    try:
        _EMAIL_ADAPTER.validate_python(order.email)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Please provide a valid email address.")

    styles = normalize_styles(order.styles)
    if not styles:
        raise HTTPException(status_code=400, detail="Please choose at least one portrait style.")
    delivery = normalize_delivery(order.delivery)
    if not delivery:
        raise HTTPException(status_code=400, detail="Please choose at least one delivery option.")

    try:
        _, url = await checkout.create_session_async(
            first_name=order.first_name,
            last_name=order.last_name,
            email=order.email,
            styles=styles,
            delivery=delivery,
            base_url=_base_url(request, settings),
        )
    except CheckoutError as e:
        raise HTTPException(status_code=500, detail=str(e) or "Unable to create checkout session.")
    return CheckoutSessionResponse(url=url)


@app.get("/api/session-status", response_model=SessionStatusResponse, responses=_ERROR_RESPONSES)
async def session_status(
    session_id: str = "",
    checkout: CheckoutService = Depends(get_checkout_service),
) -> SessionStatusResponse:
    if not session_id:
        raise HTTPException(status_code=400, detail="Missing session_id query parameter.")
    try:
        session = await checkout.retrieve_session_async(session_id)
    except CheckoutError as e:
        raise HTTPException(status_code=500, detail=str(e) or "Unable to retrieve checkout session.")

    order = read_session_metadata(session.get("metadata"))
    return SessionStatusResponse(
        paid=is_paid(session),
        email=session_email(session),
        first_name=order["firstName"],
        last_name=order["lastName"],
        styles=order["styles"],
        style_labels=order["styleLabels"],
        delivery=order["delivery"],
    )


# ── Generation API ───────────────────────────────────────────

@app.post("/api/generate-portrait", response_model=GeneratePortraitResponse, responses=_ERROR_RESPONSES)
async def generate_portrait(
    sessionId: str = Form(""),
    email: str = Form(""),
    firstName: str = Form(""),
    lastName: str = Form(""),
    styles: Optional[list[str]] = Form(None),
    petImage: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    checkout: CheckoutService = Depends(get_checkout_service),
    portraits: Optional[PortraitService] = Depends(get_portrait_service),
) -> GeneratePortraitResponse:
    if portraits is None:
        raise HTTPException(status_code=500, detail="OpenAI is not configured.")

    session_id = sessionId.strip()
    email = email.strip()
    if not session_id or not email or petImage is None:
        raise HTTPException(status_code=400, detail="Missing required form data.")

    content = await petImage.read()
    if not content:
        raise HTTPException(status_code=400, detail="A valid pet image file is required.")
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"Pet image must be under {settings.max_upload_bytes // (1024 * 1024)} MB.",
        )

    try:
        session = await checkout.retrieve_session_async(session_id)
    except CheckoutError as e:
        raise HTTPException(status_code=500, detail=str(e) or "Failed to generate portrait.")

    if not is_paid(session):
        raise HTTPException(status_code=400, detail="Checkout session is not paid yet.")
    paid_email = session_email(session)
    if paid_email and paid_email.lower() != email.lower():
        raise HTTPException(status_code=400, detail="Session email does not match the submitted email.")

    metadata = session.get("metadata") or {}
    purchased = read_session_metadata(metadata)["styles"]
    selected = resolve_generation_styles(normalize_styles(styles or []), purchased)
    if not selected:
        raise HTTPException(status_code=400, detail="No portrait styles were purchased for this session.")

    persona = persona_name(firstName, lastName, metadata)
    try:
        results = await portraits.generate(
            content,
            selected,
            persona=persona,
            filename=petImage.filename or "pet.png",
            content_type=petImage.content_type or "image/png",
        )
    except PortraitGenerationError as e:
        logger.exception("Portrait generation error for session %s", session_id)
        raise HTTPException(status_code=500, detail=str(e) or "Failed to generate portrait.")

    logger.info("Generated %d portrait(s) for session %s", len(results), session_id)
    return GeneratePortraitResponse(portraits=results)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8001,
        reload=True,
    )
