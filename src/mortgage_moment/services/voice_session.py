# src/mortgage_moment/services/voice_session.py
from __future__ import annotations

import json
from enum import Enum
from typing import Any, Callable

from mortgage_moment.adapters.logging_utils import get_logger
from mortgage_moment.domain.listing import Listing
from mortgage_moment.domain.ports import EmailSender, RealtimeSessionMinter
from mortgage_moment.domain.profile import PROFILE_FIELD_ALIASES, BuyerProfile, to_number
from mortgage_moment.services.buying_power import BuyingPowerService, affordability_message
from mortgage_moment.services.email_summary import EmailSummaryRequest, format_eur, send_summary

logger = get_logger(__name__)

FUNCTION_CALL_DONE = "response.function_call_arguments.done"

TOOL_SCHEMAS: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "send_email_summary",
        "description": "Send an email summary of the current property to the user.",
        "parameters": {"type": "object", "properties": {}, "required": []},
    },
    {
        "type": "function",
        "name": "update_profile_field",
        "description": (
            "Update one field of the user's financial profile when they correct "
            "or add a number during the conversation."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "field": {
                    "type": "string",
                    "enum": ["income", "debts", "equity", "interestRate", "repaymentRate", "name", "email"],
                },
                "value": {"type": ["number", "string"]},
            },
            "required": ["field", "value"],
        },
    },
    {
        "type": "function",
        "name": "check_affordability",
        "description": (
            "Check whether the user can afford the current property (or a given "
            "price) with their current profile."
        ),
        "parameters": {
            "type": "object",
            "properties": {"price": {"type": "number"}},
            "required": [],
        },
    },
]


class VoiceState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"
    ERROR = "error"


_TRANSITIONS: dict[VoiceState, set[VoiceState]] = {
    VoiceState.IDLE: {VoiceState.CONNECTING, VoiceState.CLOSED},
    VoiceState.CONNECTING: {VoiceState.CONNECTED, VoiceState.ERROR, VoiceState.CLOSED},
    VoiceState.CONNECTED: {VoiceState.CLOSED, VoiceState.ERROR},
    VoiceState.CLOSED: {VoiceState.CONNECTING},
    VoiceState.ERROR: {VoiceState.CONNECTING, VoiceState.CLOSED},
}


class VoiceSessionError(RuntimeError):
    pass


def build_instructions(listing: Listing | None, profile: BuyerProfile) -> str:
    """System prompt for the "Momo" assistant."""
    if listing is not None:
        addr = listing.address
        context = f"""
You are "Momo", a helpful mortgage assistant for the "Mortgage Moment" application.

You are currently discussing the following property:
Title: {listing.title}
Address: {addr.street}, {addr.postcode} {addr.city}
Price: {format_eur(listing.buying_price)}
Rooms: {listing.rooms:g}
Size: {listing.square_meter:g} sqm
Floor: {listing.floor:g}

The user you are talking to provided the following details:
Name: {profile.name or 'Unknown'}
Email: {profile.email or 'Unknown'}
Monthly Income: {format_eur(profile.monthly_income) if profile.monthly_income else 'Unknown'}
Monthly Debts: {format_eur(profile.monthly_debts)}
Equity: {format_eur(profile.equity)}

The user is interested in this property. Do not suggest other properties but help them answer their questions about this one.
"""
    else:
        context = "You are a helpful mortgage assistant."

    city = listing.address.city if listing is not None and listing.address.city else "your area"
    greeting_name = profile.name or "there"

    return f"""{context}
IMPORTANT: Please speak ONLY in English.
Be excited about helping the user.
Introduce yourself like this: "Hi {greeting_name}, I'm Momo, your money-minded mortgage mentor. I see you've picked out a property in {city}. Anything specific I can help with?"

## Tools
- "send_email_summary": if the user asks for a summary or more information to be sent to them. Afterwards, tell the user that you have sent the email.
- "update_profile_field": when the user gives or corrects one number (income, debts, equity, interest or repayment rate) or their name/email. Call it once per field.
- "check_affordability": when the user asks whether they can afford this property or a given price. Use the result, do not guess.
"""


class VoiceSession:
    """
    Server-side model of one realtime voice conversation.

    idle -> connecting -> connected -> closed, with error reachable from
    connecting/connected. Tool calls arriving from the transport are routed
    through a dispatch table keyed by tool name; each handler returns a JSON
    object that goes back to the model as function_call_output.
    """

    def __init__(
        self,
        *,
        listing: Listing | None,
        profile: BuyerProfile,
        buying_power: BuyingPowerService,
        email_sender_factory: Callable[[], EmailSender] | None = None,
        minter: RealtimeSessionMinter | None = None,
    ) -> None:
        self.listing = listing
        self.profile = profile
        self.buying_power = buying_power
        self.email_sender_factory = email_sender_factory
        self.minter = minter

        self.state = VoiceState.IDLE
        self.error: str | None = None
        self.last_check: dict[str, Any] | None = None

        self.handlers: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
            "send_email_summary": self._send_email_summary,
            "update_profile_field": self._update_profile_field,
            "check_affordability": self._check_affordability,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _transition(self, target: VoiceState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise VoiceSessionError(f"invalid transition {self.state.value} -> {target.value}")
        logger.info("voice_state", extra={"context": {"from": self.state.value, "to": target.value}})
        self.state = target

    def instructions(self) -> str:
        return build_instructions(self.listing, self.profile)

    def start(self) -> str:
        """Mint an ephemeral client secret configured with our prompt and tools."""
        if self.minter is None:
            raise VoiceSessionError("no realtime session minter configured")
        self._transition(VoiceState.CONNECTING)
        self.error = None
        try:
            return self.minter.create_session(instructions=self.instructions(), tools=TOOL_SCHEMAS)
        except Exception as e:
            self.fail(str(e))
            raise

    def on_channel_open(self) -> list[dict[str, Any]]:
        self._transition(VoiceState.CONNECTED)
        return [
            self.session_update(),
            {"type": "response.create", "response": {"modalities": ["audio", "text"]}},
        ]

    def session_update(self) -> dict[str, Any]:
        return {
            "type": "session.update",
            "session": {
                "modalities": ["audio", "text"],
                "instructions": self.instructions(),
                "tools": TOOL_SCHEMAS,
            },
        }

    def fail(self, message: str) -> None:
        self.error = message
        self._transition(VoiceState.ERROR)

    def close(self) -> None:
        if self.state != VoiceState.CLOSED:
            self._transition(VoiceState.CLOSED)

    # ------------------------------------------------------------------
    # Transport events
    # ------------------------------------------------------------------
    def handle_event(self, event: dict[str, Any]) -> list[dict[str, Any]]:
        """Consume one inbound transport event; return the events to send back."""
        if self.state != VoiceState.CONNECTED:
            logger.warning(
                "voice_event_ignored",
                extra={"context": {"state": self.state.value, "type": event.get("type")}},
            )
            return []
        if event.get("type") != FUNCTION_CALL_DONE:
            return []
        return self.dispatch(
            str(event.get("name") or ""),
            event.get("arguments"),
            str(event.get("call_id") or ""),
        )

    def dispatch(self, name: str, arguments: Any, call_id: str) -> list[dict[str, Any]]:
        args = _parse_arguments(arguments)
        handler = self.handlers.get(name)

        if handler is None:
            output: dict[str, Any] = {"success": False, "message": f"Unknown tool: {name}"}
        else:
            try:
                output = handler(args)
            except Exception as e:
                # the model gets the failure as data and can tell the user
                logger.error("voice_tool_failed", extra={"context": {"tool": name, "error": repr(e)}})
                output = {"success": False, "message": str(e)}

        logger.info("voice_tool_called", extra={"context": {"tool": name, "success": output.get("success")}})
        return [
            {
                "type": "conversation.item.create",
                "item": {
                    "type": "function_call_output",
                    "call_id": call_id,
                    "output": json.dumps(output, default=str),
                },
            },
            {"type": "response.create"},
        ]

    # ------------------------------------------------------------------
    # Tool handlers
    # ------------------------------------------------------------------
    def _send_email_summary(self, args: dict[str, Any]) -> dict[str, Any]:
        if self.email_sender_factory is None:
            return {"success": False, "message": "Email is not configured"}
        if not self.profile.email:
            return {"success": False, "message": "I don't have your email address yet"}

        listing = self.listing
        req = EmailSummaryRequest(
            user_name=self.profile.name or None,
            user_email=self.profile.email,
            property_title=listing.title if listing else None,
            property_address=(
                f"{listing.address.street}, {listing.address.postcode} {listing.address.city}" if listing else None
            ),
            property_price=listing.buying_price if listing else None,
            property_image=listing.images[0] if listing and listing.images else None,
            is_voice_call=True,
            user_profile=self.profile.to_public(),
            affordability_data=self.last_check,
        )
        send_summary(req, self.email_sender_factory())
        return {"success": True, "message": "Email sent successfully"}

    def _update_profile_field(self, args: dict[str, Any]) -> dict[str, Any]:
        field = str(args.get("field") or "")
        if field not in PROFILE_FIELD_ALIASES:
            return {"success": False, "message": f"Unknown profile field: {field}"}
        self.profile = self.profile.with_field(field, args.get("value"))
        self.last_check = None
        return {"success": True, "profile": self.profile.to_public()}

    def _check_affordability(self, args: dict[str, Any]) -> dict[str, Any]:
        price = to_number(args.get("price"))
        if price <= 0 and self.listing is not None:
            price = self.listing.buying_price
        if price <= 0:
            return {"success": False, "message": "No property price to check"}

        result, ceiling = self.buying_power.check(self.profile, price)
        self.last_check = result.verdict()
        return {
            "success": True,
            "price": price,
            **result.verdict(),
            "source": ceiling.source,
            "message": affordability_message(result),
        }


def _parse_arguments(arguments: Any) -> dict[str, Any]:
    if isinstance(arguments, dict):
        return arguments
    if isinstance(arguments, str) and arguments.strip():
        try:
            parsed = json.loads(arguments)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}
