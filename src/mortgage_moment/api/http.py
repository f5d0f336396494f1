# src/mortgage_moment/api/http.py
from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Callable

from fastapi import APIRouter, Body, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mortgage_moment.adapters.brevo_email import EmailConfigError, EmailDeliveryError, make_brevo_client
from mortgage_moment.adapters.buying_power import InterhypBuyingPowerClient
from mortgage_moment.adapters.config import config
from mortgage_moment.adapters.local_listings import LocalListingStore, default_data_paths
from mortgage_moment.adapters.logging_utils import get_logger
from mortgage_moment.adapters.realtime_client import RealtimeError, make_realtime_client
from mortgage_moment.adapters.thinkimmo_listings import ThinkImmoListingClient
from mortgage_moment.domain.affordability import AffordabilityPolicy
from mortgage_moment.domain.listing import Listing
from mortgage_moment.domain.ports import EmailSender, RealtimeSessionMinter, SourceKind
from mortgage_moment.domain.profile import BuyerProfile
from mortgage_moment.services.buying_power import BuyingPowerService, affordability_message
from mortgage_moment.services.email_summary import EmailSummaryRequest, EmailValidationError, require_email, send_summary
from mortgage_moment.services.normalizer import normalize
from mortgage_moment.services.property_chain import PropertySourceChain
from mortgage_moment.services.property_search import PropertySearchService
from mortgage_moment.services.validation import listing_query_from_params, profile_from_params
from mortgage_moment.services.voice_session import VoiceSession, VoiceSessionError
from .schemas import (
    CalculateAffordabilityRequest,
    CalculateAffordabilityResponse,
    MessageResponse,
    RealtimeTokenRequest,
    RealtimeTokenResponse,
    VoiceToolCallRequest,
    VoiceToolCallResponse,
)

logger = get_logger(__name__)


@dataclass
class AppServices:
    """Everything a request handler needs, built once and injected."""
    store: LocalListingStore
    search: PropertySearchService
    buying_power: BuyingPowerService
    email_sender_factory: Callable[[], EmailSender]
    realtime_factory: Callable[[], RealtimeSessionMinter]


def build_services() -> AppServices:
    store = LocalListingStore.load(*default_data_paths(config.DATA_FILE))
    buying_power = BuyingPowerService(
        gateway=InterhypBuyingPowerClient(),
        policy=AffordabilityPolicy.from_config(config),
    )
    chain = PropertySourceChain(
        client=ThinkImmoListingClient(),
        store=store,
        default_location=config.DEFAULT_LOCATION,
    )
    return AppServices(
        store=store,
        search=PropertySearchService(chain, buying_power),
        buying_power=buying_power,
        email_sender_factory=make_brevo_client,
        realtime_factory=make_realtime_client,
    )


def _services(request: Request) -> AppServices:
    return request.app.state.services


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, "error": message, **extra})


def _listing_from_wire(raw: dict[str, Any] | None) -> Listing | None:
    # the client echoes a listing it got from /api/properties; normalize is total
    if not raw:
        return None
    return normalize(raw, SourceKind.EXTERNAL_API)


router = APIRouter()


@router.get("/health")
def health(request: Request) -> dict[str, Any]:
    return {"status": "ok", "listings": len(_services(request).store)}


@router.get("/api/properties")
def list_properties(
    request: Request,
    min_price: str | None = Query(None, alias="minPrice"),
    max_price: str | None = Query(None, alias="maxPrice"),
    rooms: str | None = Query(None),
    size: str | None = Query(None),
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    location: str | None = Query(None),
    income: str | None = Query(None),
    equity: str | None = Query(None),
    debts: str | None = Query(None),
) -> dict[str, Any]:
    """
    Listings for a location, annotated with affordability when the caller
    sent income or equity. Source: ThinkImmo (requested, then default
    location), else the local dataset.
    """
    params = {
        "minPrice": min_price,
        "maxPrice": max_price,
        "rooms": rooms,
        "size": size,
        "limit": limit,
        "offset": offset,
        "location": location,
        "income": income,
        "equity": equity,
        "debts": debts,
    }
    query = listing_query_from_params(params)
    profile = profile_from_params(params)

    result = _services(request).search.search(query, profile)
    return result.to_wire()


@router.post("/api/send-email", response_model=MessageResponse)
def send_email(request: Request, body: EmailSummaryRequest = Body(...)) -> Any:
    services = _services(request)

    try:
        require_email(body)
        sender = services.email_sender_factory()
        data = send_summary(body, sender)
    except EmailValidationError as e:
        return _error(400, str(e))
    except EmailConfigError as e:
        logger.error("email_config_missing", extra={"context": {"error": str(e)}})
        return _error(500, "Server configuration error")
    except EmailDeliveryError as e:
        logger.error(
            "email_send_failed",
            extra={"context": {"error": str(e), "details": e.details}},
        )
        return _error(500, "Failed to send email", details=e.details)

    return MessageResponse(message="Email sent", data=data)


@router.post("/api/calculate-affordability", response_model=CalculateAffordabilityResponse)
def calculate_affordability(
    request: Request,
    body: CalculateAffordabilityRequest = Body(...),
) -> CalculateAffordabilityResponse:
    profile = BuyerProfile.from_raw(
        {"income": body.income, "equity": body.equity, "debts": body.monthly_debts}
    )
    result, ceiling = _services(request).buying_power.check(profile, body.property_price)

    return CalculateAffordabilityResponse(
        is_affordable=result.is_affordable,
        max_affordable_price=result.max_affordable_price,
        gap=result.gap,
        budget_details=ceiling.budget_details(),
        message=affordability_message(result),
    )


@router.post("/api/realtime-token", response_model=RealtimeTokenResponse)
def realtime_token(
    request: Request,
    body: RealtimeTokenRequest | None = Body(None),
) -> Any:
    services = _services(request)
    body = body or RealtimeTokenRequest()

    try:
        session = VoiceSession(
            listing=_listing_from_wire(body.property_data),
            profile=BuyerProfile.from_raw(body.user_profile),
            buying_power=services.buying_power,
            minter=services.realtime_factory(),
        )
        secret = session.start()
    except (RealtimeError, VoiceSessionError) as e:
        logger.error("realtime_token_failed", extra={"context": {"error": str(e)}})
        return _error(500, "Failed to create realtime session")

    return RealtimeTokenResponse(secret=secret)


@router.post("/api/voice/tool-call", response_model=VoiceToolCallResponse)
def voice_tool_call(request: Request, body: VoiceToolCallRequest) -> VoiceToolCallResponse:
    """
    One tool call relayed by a client that holds the realtime connection.
    The session is rebuilt from the posted profile/property, so the server
    stays stateless between calls.
    """
    services = _services(request)
    session = VoiceSession(
        listing=_listing_from_wire(body.property_data),
        profile=BuyerProfile.from_raw(body.user_profile),
        buying_power=services.buying_power,
        email_sender_factory=services.email_sender_factory,
    )
    events = session.dispatch(body.name, body.arguments, body.call_id)
    return VoiceToolCallResponse(events=events, user_profile=session.profile.to_public())


def create_app(services: AppServices | None = None) -> FastAPI:
    """
    Build the API. Tests pass their own AppServices; in production they are
    built once at startup (local dataset loaded a single time).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services()
        yield

    app = FastAPI(title="Mortgage Moment API", version="0.1.0", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request", details=str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_exception", extra={"context": {"path": request.url.path}})
        return _error(500, "Internal Server Error")

    app.include_router(router)
    return app


app = create_app()
